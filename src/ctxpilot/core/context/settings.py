"""Context optimization settings: the knobs that trade context fidelity for tokens."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContextOptimizationSettings(BaseModel):
    """Immutable configuration for the context optimization pipeline.

    Field names are snake_case; the camelCase names used by the editor's
    settings store are accepted as aliases.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    enabled: bool = True
    use_smart_truncation: bool = True
    max_files: int = Field(default=100, ge=0)
    max_terminal_lines: int = Field(default=50, ge=0)
    include_inactive_terminals: bool = False
    include_file_details_in_first_request_only: bool = True
    include_diagnostics: bool = True
    use_hierarchical_file_structure: bool = True
    max_file_structure_depth: int = Field(default=4, ge=0)
    max_files_per_directory: int = Field(default=5, ge=0)
    include_environment_details_in_every_request: bool = False


DEFAULT_CONTEXT_OPTIMIZATION_SETTINGS = ContextOptimizationSettings()

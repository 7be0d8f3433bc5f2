"""Directory scan configuration."""

from pydantic import BaseModel, Field


class ScanOptions(BaseModel):
    """Options controlling repository discovery under a scan root."""

    scan_hidden_path: bool = Field(
        default=False, description="Descend into directories starting with a dot"
    )
    remove_suffix: bool = Field(
        default=False, description="Strip a trailing .git from repository urls"
    )
    enable_repo_config: bool = Field(
        default=True, description="Apply overrides from an in-repo cgitrc file"
    )
    enable_git_config: bool = Field(
        default=False, description="Read gitweb.* keys from the repository git config"
    )
    repo_config_name: str = Field(
        default="cgitrc", description="File name of the in-repo config"
    )

    class Config:
        frozen = True

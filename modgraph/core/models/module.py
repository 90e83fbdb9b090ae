"""
Module model — one node of the dependency graph.

Records are decoded from ``go list -m -json`` output (Go's field names are
accepted as aliases) or synthesized from the vendor manifest. The
replacement is a separate record owned by the original; consumers read
identity and content through ``effective``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Module(BaseModel):
    """A module record.

    ``dependencies`` holds coordinates of direct dependencies. They are
    weak references: resolve them through ``ModuleGraph`` rather than
    keeping pointers between records.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # ── Identity (from go list) ──────────────────────────────────
    path: str = Field(alias="Path")
    version: str = Field(default="", alias="Version")
    dir: str = Field(default="", alias="Dir")
    main: bool = Field(default=False, alias="Main")
    replace: Module | None = Field(default=None, alias="Replace")

    # ── Informational ────────────────────────────────────────────
    indirect: bool = Field(default=False, alias="Indirect")
    go_version: str = Field(default="", alias="GoVersion")
    go_mod: str = Field(default="", alias="GoMod")   # cached go.mod file
    time: datetime | None = Field(default=None, alias="Time")   # version publish time

    # ── Populated by the core, never decoded ─────────────────────
    vendored: bool = Field(default=False, exclude=True)
    dependencies: list[str] = Field(default_factory=list, exclude=True)

    @model_validator(mode="after")
    def _main_is_never_replaced(self) -> Module:
        if self.main and self.replace is not None:
            raise ValueError(f"main module {self.path} cannot be replaced")
        return self

    @property
    def coordinates(self) -> str:
        """``path`` alone when unversioned, else ``path@version``."""
        if not self.version:
            return self.path
        return f"{self.path}@{self.version}"

    @property
    def effective(self) -> Module:
        """The record that carries this module's identity and content."""
        return self.replace if self.replace is not None else self

    @property
    def package_url(self) -> str:
        return f"pkg:golang/{self.coordinates}"

    def to_dict(self) -> dict:
        data: dict = {
            "path": self.path,
            "version": self.version,
            "dir": self.dir,
            "main": self.main,
            "vendored": self.vendored,
            "dependencies": list(self.dependencies),
        }
        if self.time is not None:
            data["time"] = self.time.isoformat()
        if self.replace is not None:
            data["replace"] = self.replace.to_dict()
        return data

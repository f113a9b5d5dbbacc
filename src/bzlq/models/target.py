from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TargetDetail(BaseModel):
    """Summary of one rule target, derived by the rule classifier."""

    model_config = ConfigDict(frozen=True)

    label: str  # e.g. "//app:server" or "@zlib//:zlib"
    description: str  # Rule class, e.g. "cc_binary"
    is_executable: bool = False
    is_test: bool = False


class TargetFilters(BaseModel):
    """Optional filters applied by ``bzlq targets``. Active filters AND together."""

    run_only: bool = False
    test_only: bool = False
    search: str | None = None  # Label prefix; empty string matches everything

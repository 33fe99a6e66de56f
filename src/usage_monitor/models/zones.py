"""Zone models returned by zone discovery."""

from pydantic import BaseModel, Field


class ZoneAccount(BaseModel):
    id: str
    name: str = ""


class Zone(BaseModel):
    """A zone as returned by the zones REST endpoint."""

    id: str
    name: str
    status: str = "active"
    paused: bool = False
    type: str | None = None
    account: ZoneAccount | None = None


class ZoneDiscoveryResult(BaseModel):
    """Outcome of paging through an account's active zones."""

    zones: list[Zone] = Field(default_factory=list)
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def zone_ids(self) -> list[str]:
        return [zone.id for zone in self.zones]

    @property
    def total(self) -> int:
        return len(self.zones)

"""
Throttle Policy — validated fixed-window limits.

Reads overrides from environment variables:
    GUARD_RATE_LIMIT = <requests per window>
    GUARD_RATE_WINDOW = <window length in seconds>
    GUARD_RATE_HOURLY_LIMIT = <requests per hour>
    GUARD_RATE_HOURLY_ENFORCED = true | false
    GUARD_RATE_SWEEP_INTERVAL = <seconds between sweeps>
"""
import os

from pydantic import BaseModel, Field, model_validator

from .. import conf

HOUR = 3600.0


class ThrottlePolicy(BaseModel):
    """Validated throttle configuration.

    The hourly tier is tracked but only enforced when ``hourly_enforced``
    is set.
    """

    limit: int = Field(default=conf.RATE_LIMIT, ge=1)
    window_seconds: float = Field(default=conf.RATE_WINDOW, gt=0)
    hourly_limit: int = Field(default=conf.RATE_HOURLY_LIMIT, ge=1)
    hourly_enforced: bool = Field(default=False)
    sweep_interval: float = Field(default=conf.RATE_SWEEP_INTERVAL, gt=0)

    @model_validator(mode="after")
    def validate_tiers(self) -> "ThrottlePolicy":
        """The hourly ceiling cannot be tighter than the per-window one."""
        if self.hourly_enforced and self.hourly_limit < self.limit:
            raise ValueError(
                f"hourly_limit ({self.hourly_limit}) must be >= "
                f"limit ({self.limit})"
            )
        return self

    @classmethod
    def from_env(cls) -> "ThrottlePolicy":
        """Create ThrottlePolicy by loading values from environment."""
        prefix = conf.ENV_PREFIX
        return cls(
            limit=int(os.environ.get(f"{prefix}RATE_LIMIT", conf.RATE_LIMIT)),
            window_seconds=float(
                os.environ.get(f"{prefix}RATE_WINDOW", conf.RATE_WINDOW)
            ),
            hourly_limit=int(
                os.environ.get(f"{prefix}RATE_HOURLY_LIMIT", conf.RATE_HOURLY_LIMIT)
            ),
            hourly_enforced=conf.env_flag(f"{prefix}RATE_HOURLY_ENFORCED", False),
            sweep_interval=float(
                os.environ.get(
                    f"{prefix}RATE_SWEEP_INTERVAL", conf.RATE_SWEEP_INTERVAL
                )
            ),
        )

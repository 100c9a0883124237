"""
Cipher Configuration — validated settings for the SecretStore.

Reads overrides from environment variables:
    GUARD_CIPHER_BACKEND = aesgcm | chacha20
    GUARD_AEAD_KEY_NAME = <session storage name of the AEAD key>
    GUARD_XOR_KEY_NAME = <session storage name of the XOR key>
    GUARD_FAIL_OPEN = true | false

Security Note:
    Never log key material. Only log storage names and schemes.
"""
import os

from pydantic import BaseModel, Field, field_validator, model_validator

from .. import conf


class CipherConfig(BaseModel):
    """Validated cipher configuration."""

    backend: str = Field(default="aesgcm")
    aead_key_name: str = Field(default=conf.AEAD_KEY_NAME, min_length=1)
    xor_key_name: str = Field(default=conf.XOR_KEY_NAME, min_length=1)
    fail_open: bool = Field(default=True)

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_key_names(self) -> "CipherConfig":
        """Both key spaces must live under different storage names."""
        if self.aead_key_name == self.xor_key_name:
            raise ValueError(
                "aead_key_name and xor_key_name must differ "
                f"(both are {self.aead_key_name!r})"
            )
        return self

    @classmethod
    def from_env(cls) -> "CipherConfig":
        """Create CipherConfig by loading values from environment.

        Returns:
            Populated CipherConfig instance.
        """
        prefix = conf.ENV_PREFIX
        return cls(
            backend=os.environ.get(f"{prefix}CIPHER_BACKEND", conf.CIPHER_BACKEND),
            aead_key_name=os.environ.get(
                f"{prefix}AEAD_KEY_NAME", conf.AEAD_KEY_NAME
            ),
            xor_key_name=os.environ.get(
                f"{prefix}XOR_KEY_NAME", conf.XOR_KEY_NAME
            ),
            fail_open=conf.env_flag(f"{prefix}FAIL_OPEN", True),
        )

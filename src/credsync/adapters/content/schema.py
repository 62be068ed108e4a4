"""Credential metadata document schema."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)


class CredentialDocumentPayload(BaseModel):
    """Issuer-authored JSON stored under the metadata content id.

    Only ``organization`` drives indexing; the remaining typed keys are the ones
    issuers commonly set. Anything else is kept and logged once per key.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    organization: str | None = None
    name: str | None = None
    description: str | None = None
    issued_at: str | None = Field(default=None, alias="issuedAt")

    @field_validator("organization", "name", "description", "issued_at", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, int | float) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Credential document: unmodeled keys: %s",
            ", ".join(sorted(new_keys)),
        )

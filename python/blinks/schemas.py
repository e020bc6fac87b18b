"""Wire schemas for the Solana Actions (blinks) protocol."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .constants import BLOCKCHAIN_IDS_HEADER


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ActionParameterOption(_Schema):
    label: str
    value: str


class ActionParameter(_Schema):
    """Input collected by the wallet UI before the action is posted."""

    parameter_type: str | None = Field(default=None, alias="type")
    name: str
    label: str
    required: bool = False
    options: list[ActionParameterOption] | None = None
    min: float | None = None


class LinkedAction(_Schema):
    label: str
    href: str
    parameters: list[ActionParameter] | None = None


class LinkActions(_Schema):
    actions: list[LinkedAction] = Field(default_factory=list)


class ActionError(_Schema):
    message: str


class ActionGetResponse(_Schema):
    """Action descriptor returned by discovery and by checkout completion.

    ``blockchain_id`` is sent in the body as ``blockchainId`` and out of band
    in the ``x-blockchain-ids`` header.
    """

    blockchain_id: str
    action_type: Literal["action", "completed"] = Field(default="action", alias="type")
    icon: str = ""
    title: str = ""
    description: str = ""
    label: str = ""
    disabled: bool = False
    links: LinkActions | None = None
    error: ActionError | None = None

    @property
    def actions(self) -> list[LinkedAction]:
        return self.links.actions if self.links else []

    def headers(self) -> dict[str, str]:
        return {BLOCKCHAIN_IDS_HEADER: self.blockchain_id}


class ActionPostRequest(_Schema):
    account: str
    signature: str | None = None
    data: dict[str, Any] | None = None


class NextAction(_Schema):
    action_type: Literal["post"] = Field(default="post", alias="type")
    href: str


class ActionPostLinks(_Schema):
    next: NextAction


class ActionPostResponse(_Schema):
    """Unsigned transaction handed to the wallet for signing."""

    blockchain_id: str
    transaction: str
    message: str | None = None
    links: ActionPostLinks | None = None

    def headers(self) -> dict[str, str]:
        return {BLOCKCHAIN_IDS_HEADER: self.blockchain_id}

"""
Actor models: who performs a mutation.

Customer, admin or system; each variant renders a human label for audit display.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from utils.constants import ADMIN_ROLE_LABELS, CUSTOMER_LABEL, SYSTEM_LABEL


class CustomerActor(BaseModel):
    """A customer, identified by account id and/or a display identifier (e-mail)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["customer"] = "customer"
    customer_id: Optional[int] = None
    identifier: Optional[str] = None

    @property
    def actor_type(self) -> str:
        return "customer"

    @property
    def label(self) -> str:
        if self.identifier:
            return self.identifier
        if self.customer_id is not None:
            return f"{CUSTOMER_LABEL} #{self.customer_id}"
        return CUSTOMER_LABEL


class AdminActor(BaseModel):
    """An authenticated back-office user (system admin, venue owner or staff)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["admin"] = "admin"
    admin_id: int
    name: Optional[str] = None
    role: Literal["admin", "owner", "staff"] = "admin"

    @property
    def actor_type(self) -> str:
        return self.role

    @property
    def label(self) -> str:
        return self.name or f"{ADMIN_ROLE_LABELS[self.role]} #{self.admin_id}"


class SystemActor(BaseModel):
    """The engine or a scheduled job acting on its own."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["system"] = "system"

    @property
    def actor_type(self) -> str:
        return "system"

    @property
    def label(self) -> str:
        return SYSTEM_LABEL


Actor = Annotated[
    Union[CustomerActor, AdminActor, SystemActor], Field(discriminator="kind")
]

SYSTEM = SystemActor()


def is_admin(actor) -> bool:
    return isinstance(actor, AdminActor)

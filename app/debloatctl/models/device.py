"""Device models.

Describes the attached Android device, its users, and the per-device
settings that steer how actions are planned and folded back.
"""

from dataclasses import dataclass, field
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True, slots=True)
class User:
    """An Android user on the device.

    Attributes:
        id: Android user id (0 for the owner, e.g. 10 for a work profile).
        index: Zero-based position in the device's user list.
    """

    id: int
    index: int

    def __str__(self) -> str:
        return f"user {self.id}"


PRIMARY_USER = User(id=0, index=0)


@dataclass(frozen=True, slots=True)
class Device:
    """An attached Android device.

    Attributes:
        model: Device model name (ro.product.model).
        android_sdk: SDK level (ro.build.version.sdk).
        adb_id: Serial reported by ``adb devices``.
        users: Ordered user list; index 0 is the primary user.
    """

    model: str
    android_sdk: int
    adb_id: str
    users: tuple[User, ...] = field(default=(PRIMARY_USER,))

    def __post_init__(self) -> None:
        """Validate device data after initialization."""
        if not self.users:
            msg = "Device must have at least one user"
            raise ValueError(msg)
        for position, user in enumerate(self.users):
            if user.index != position:
                msg = f"User {user.id} has index {user.index}, expected {position}"
                raise ValueError(msg)

    @property
    def is_multi_user(self) -> bool:
        """Check if the device exposes more than one user."""
        return len(self.users) > 1


class DeviceSettings(BaseModel):
    """Settings that change how actions behave on a device.

    Attributes:
        expert_mode: Allow selecting packages classified unsafe.
        multi_user_mode: Mirror every action on all users of the device.
        disable_mode: Disable packages instead of uninstalling them.
    """

    model_config = ConfigDict(extra="forbid")

    expert_mode: Annotated[
        bool,
        Field(description="Allow selection of unsafe packages"),
    ] = False
    multi_user_mode: Annotated[
        bool,
        Field(description="Apply actions to every user of the device"),
    ] = True
    disable_mode: Annotated[
        bool,
        Field(description="Disable instead of uninstall"),
    ] = False

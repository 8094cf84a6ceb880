"""Contacts between bodies and the sticking/sliding modes derived from their motion.

A contact frame has its z-axis along the contact normal, pointing from body 1
to body 2. Raw contact frames are supplied in the simulator's convention:
a row-major 3x3 matrix whose rows are the axes and whose first row is the
normal. :meth:`Contact.from_raw_frame` reorders the axes so that the normal
becomes the z-axis.
"""

from __future__ import annotations

import enum
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

__all__ = [
    "BodyType",
    "RobotType",
    "RawContact",
    "Contact",
    "EE_FRICTION",
    "TABLE_FRICTION",
    "DEFAULT_FRICTION",
    "IN_CONTACT",
    "NOT_IN_CONTACT",
    "collect_contacts",
    "collect_focused_contacts",
    "ang_to_ss_mode",
    "vel_to_contact_mode",
    "vel_to_contact_modes",
]

EE_FRICTION = 0.1
TABLE_FRICTION = 1.0
DEFAULT_FRICTION = 1.0

IN_CONTACT = 0
NOT_IN_CONTACT = 1

ENV_INDEX = -1
ROBOT_INDEX = -2
EE_POSE_INDEX = -3
EE_POSITION_INDEX = -4


class BodyType(enum.IntEnum):
    """Role of a body taking part in a contact."""

    ROBOT = 0
    OBJECT = 1
    ENV = 2
    EE_POSE = 3
    EE_POSITION = 4


class RobotType(enum.IntEnum):
    """Which robot representation focused contacts keep."""

    NONE = -1
    ROBOT = 0
    EE_POSE = 1
    EE_POSITION = 2


@dataclass(frozen=True)
class RawContact:
    """A contact as reported by a simulator, before classification.

    ``root_id``/``root_name`` identify the root of each body's kinematic tree;
    ``frame`` is the raw row-major 3x3 frame whose first row is the normal.
    """

    body_id1: int
    body_id2: int
    root_id1: int
    root_id2: int
    body_name1: str
    body_name2: str
    root_name1: str
    root_name2: str
    pos: Sequence[float]
    frame: Sequence[float]


@dataclass
class Contact:
    """A classified contact; force and velocity point from body 1 to body 2.

    ``body_idx`` is the object index for objects (``object_<i>``), -1 for the
    environment, -2 for a robot link, -3 for an end-effector pose and -4 for
    an end-effector position. ``frame`` is the rotation whose columns are the
    contact axes in the world frame, with the normal as the third column.
    """

    body_id1: int
    body_id2: int
    body_idx1: int
    body_idx2: int
    body_type1: BodyType
    body_type2: BodyType
    pos: np.ndarray
    frame: np.ndarray
    mu: float = DEFAULT_FRICTION
    transform: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.pos = np.array(self.pos, dtype=float).reshape(3)
        self.frame = np.array(self.frame, dtype=float).reshape(3, 3)
        transform = np.eye(4)
        transform[:3, :3] = self.frame
        transform[:3, 3] = self.pos
        self.transform = transform

    @classmethod
    def from_raw_frame(cls, body_id1, body_id2, body_idx1, body_idx2,
                       body_type1, body_type2, pos, raw_frame, mu=DEFAULT_FRICTION) -> Contact:
        """Build a contact from a raw frame whose first row is the normal."""
        raw = np.array(raw_frame, dtype=float).reshape(-1)
        if raw.size != 9:
            raise ValueError(f"raw frame must hold 9 values, got {raw.size}")
        axes = raw.reshape(3, 3)
        # Columns become (first tangent, second tangent, normal).
        frame = np.column_stack((axes[1], axes[2], axes[0]))
        return cls(body_id1, body_id2, body_idx1, body_idx2,
                   BodyType(body_type1), BodyType(body_type2), pos, frame, mu)


def _leading_int(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _object_index(body_name: str) -> int:
    _, sep, rest = body_name.partition("_")
    if not sep:
        raise ValueError(f"object body name {body_name!r} has no '_<index>' suffix")
    return _leading_int(rest)


def _classify(root_name: str, body_name: str) -> tuple[BodyType, int, float | None]:
    if "object" in root_name:
        return BodyType.OBJECT, _object_index(body_name), None
    if root_name == "workspace":
        return BodyType.ENV, ENV_INDEX, TABLE_FRICTION
    if root_name == "world":
        return BodyType.ENV, ENV_INDEX, None
    return BodyType.ROBOT, ROBOT_INDEX, EE_FRICTION


def collect_contacts(raw_contacts: Iterable[RawContact]) -> list[Contact]:
    """Classify every raw contact by the names of its bodies' roots."""
    contacts = []
    for raw in raw_contacts:
        friction = DEFAULT_FRICTION
        type1, idx1, mu1 = _classify(raw.root_name1, raw.body_name1)
        if mu1 is not None:
            friction = mu1
        type2, idx2, mu2 = _classify(raw.root_name2, raw.body_name2)
        if mu2 is not None:
            friction = mu2
        contacts.append(Contact.from_raw_frame(
            raw.body_id1, raw.body_id2, idx1, idx2, type1, type2,
            raw.pos, raw.frame, friction))
    return contacts


class _Skip(Exception):
    pass


def _classify_focused(root_name: str, root_id: int, body_name: str,
                      obj_root_ids, robot_type: RobotType) -> tuple[BodyType, int, float | None]:
    if "object" in root_name:
        if root_id in obj_root_ids:
            return BodyType.OBJECT, _object_index(body_name), None
        return BodyType.ENV, ENV_INDEX, None
    if root_name == "workspace":
        return BodyType.ENV, ENV_INDEX, TABLE_FRICTION
    if root_name == "world":
        return BodyType.ENV, ENV_INDEX, None
    if root_name == "ee_pose":
        if robot_type != RobotType.EE_POSE:
            raise _Skip
        return BodyType.EE_POSE, EE_POSE_INDEX, EE_FRICTION
    if root_name == "ee_position":
        if robot_type != RobotType.EE_POSITION:
            raise _Skip
        return BodyType.EE_POSITION, EE_POSITION_INDEX, EE_FRICTION
    if robot_type != RobotType.ROBOT:
        raise _Skip
    return BodyType.ROBOT, ROBOT_INDEX, EE_FRICTION


def collect_focused_contacts(raw_contacts: Iterable[RawContact], obj_root_ids,
                             robot_type) -> list[Contact]:
    """Classify contacts, keeping only the focused objects and robot kind.

    Objects whose root id is not in ``obj_root_ids`` count as environment.
    Contacts with a robot representation other than ``robot_type`` are dropped.
    """
    robot_type = RobotType(robot_type)
    focused = frozenset(obj_root_ids)
    contacts = []
    for raw in raw_contacts:
        friction = DEFAULT_FRICTION
        try:
            type1, idx1, mu1 = _classify_focused(
                raw.root_name1, raw.root_id1, raw.body_name1, focused, robot_type)
            if mu1 is not None:
                friction = mu1
            type2, idx2, mu2 = _classify_focused(
                raw.root_name2, raw.root_id2, raw.body_name2, focused, robot_type)
        except _Skip:
            continue
        if mu2 is not None:
            friction = mu2
        if "object" in raw.root_name2 and raw.root_id2 not in focused:
            # An unfocused second object demotes the first body to environment too.
            type1, idx1 = BodyType.ENV, ENV_INDEX
        contacts.append(Contact.from_raw_frame(
            raw.body_id1, raw.body_id2, idx1, idx2, type1, type2,
            raw.pos, raw.frame, friction))
    return contacts


def ang_to_ss_mode(ang: float, n_ss_mode: int) -> list[int]:
    """Map a tangential velocity angle to a sliding mode over ``n_ss_mode`` axes.

    Axis ``i`` points at angle ``pi * i / n_ss_mode``; the two axes bounding the
    sector that holds ``ang`` are set to +1 or -1 according to the side.
    """
    if n_ss_mode < 1:
        raise ValueError("n_ss_mode must be at least 1")
    n = n_ss_mode
    ss_mode = [0] * n
    ang = math.fmod(ang, 2 * math.pi)
    if ang < 0:
        ang += 2 * math.pi
    sector = ang / (math.pi / n)

    axis0 = int(sector)
    sign0 = -1 if axis0 // n == 1 else 1
    axis0 %= n

    axis1 = int(sector + 1) % (2 * n)
    sign1 = -1 if axis1 // n == 1 else 1
    axis1 %= n

    ss_mode[axis0] = sign0
    ss_mode[axis1] = sign1
    return ss_mode


def _is_pair(contact: Contact, first: BodyType, second: BodyType) -> bool:
    pair = (contact.body_type1, contact.body_type2)
    return pair in ((first, second), (second, first))


def vel_to_contact_mode(contact: Contact, twist1, twist2, n_ss_mode: int) -> tuple[int, list[int]]:
    """Return ``(cs_mode, ss_mode)`` for a contact given world-frame body twists.

    Twists are ``(v, omega)`` in the spatial frame.
    """
    if _is_pair(contact, BodyType.OBJECT, BodyType.ENV):
        twist = np.asarray(twist1, dtype=float).reshape(6) - np.asarray(twist2, dtype=float).reshape(6)
        w_vel = twist[:3] + np.cross(twist[3:], contact.pos)
        c_vel = contact.frame.T @ w_vel
        return IN_CONTACT, ang_to_ss_mode(math.atan2(c_vel[1], c_vel[0]), n_ss_mode)

    sticking = [0] * n_ss_mode
    for driver in (BodyType.ROBOT, BodyType.EE_POSE, BodyType.EE_POSITION):
        if _is_pair(contact, driver, BodyType.OBJECT):
            return IN_CONTACT, sticking
    return NOT_IN_CONTACT, sticking


def vel_to_contact_modes(contacts: Iterable[Contact], twists: Mapping[int, Sequence[float]],
                         n_ss_mode: int) -> tuple[list[int], list[list[int]]]:
    """Contact modes for every contact; bodies missing from ``twists`` are at rest."""
    zero = np.zeros(6)
    cs_modes: list[int] = []
    ss_modes: list[list[int]] = []
    for contact in contacts:
        twist1 = twists.get(contact.body_id1, zero)
        twist2 = twists.get(contact.body_id2, zero)
        cs_mode, ss_mode = vel_to_contact_mode(contact, twist1, twist2, n_ss_mode)
        cs_modes.append(cs_mode)
        ss_modes.append(ss_mode)
    return cs_modes, ss_modes
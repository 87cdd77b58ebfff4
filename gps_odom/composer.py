"""
Output views built from one fusion cycle.

The views are plain data so they can be checked without a ROS graph; the
node copies them field by field into nav_msgs/Odometry and
geometry_msgs/PoseStamped.
"""

from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from gps_odom.estimation import FusionResult, PoseMeasurement


@dataclass(frozen=True)
class OdometryView:
    stamp_ns: int
    frame_id: str
    child_frame_id: str
    position: np.ndarray
    orientation: Tuple[float, float, float, float]
    linear_velocity: np.ndarray
    angular_velocity: np.ndarray
    pose_covariance: np.ndarray    # 3x3 position block
    twist_covariance: np.ndarray   # 3x3 velocity block


@dataclass(frozen=True)
class PoseView:
    stamp_ns: int
    frame_id: str
    position: Tuple[float, float, float]
    orientation: Tuple[float, float, float, float]


def covariance_to_ros(block):
    """3x3 block -> 36-element row-major 6x6 covariance, upper-left only."""
    cov = np.zeros((6, 6))
    cov[:3, :3] = block
    return [float(c) for c in cov.reshape(-1)]


def compose_global(meas: PoseMeasurement, fused: FusionResult, omega) -> OdometryView:
    x = fused.state
    P = fused.covariance
    # cross covariance between position and velocity is dropped here
    return OdometryView(stamp_ns=meas.stamp_ns,
                        frame_id=meas.frame_id,
                        child_frame_id=meas.frame_id,
                        position=x[0:3].copy(),
                        orientation=tuple(meas.orientation),
                        linear_velocity=x[3:6].copy(),
                        angular_velocity=np.asarray(omega, dtype=float).copy(),
                        pose_covariance=P[0:3, 0:3].copy(),
                        twist_covariance=P[3:6, 3:6].copy())


def compose_local(odom: OdometryView, initial_position) -> OdometryView:
    return replace(odom, position=odom.position - np.asarray(initial_position, dtype=float))


def compose_relay(meas: PoseMeasurement, frame_id='fcu') -> PoseView:
    return PoseView(stamp_ns=meas.stamp_ns,
                    frame_id=frame_id,
                    position=tuple(meas.position),
                    orientation=tuple(meas.orientation))

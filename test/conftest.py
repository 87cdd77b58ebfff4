import math
import os
import sys

import numpy as np
import pytest

# Ensure local package import works for pytest collection.
_TEST_DIR = os.path.dirname(__file__)
_PKG_ROOT = os.path.abspath(os.path.join(_TEST_DIR, ".."))
if _PKG_ROOT not in sys.path:
    sys.path.insert(0, _PKG_ROOT)

from gps_odom.config import GpsOdomConfig  # noqa: E402
from gps_odom.estimation import PoseMeasurement, initialize_filter  # noqa: E402
from gps_odom.kalman_filter import ConstantVelocityKalmanFilter  # noqa: E402

IDENTITY_QUAT = (0.0, 0.0, 0.0, 1.0)


@pytest.fixture
def config():
    """Default node configuration listening on a test topic."""
    return GpsOdomConfig(quad_pose_topic='/quad/pose').validate()


@pytest.fixture
def kf_at_origin(config):
    """Filter initialized at the origin with the default noise model."""
    return initialize_filter(ConstantVelocityKalmanFilter(), config, (0.0, 0.0, 0.0))


@pytest.fixture
def make_meas():
    """Factory for PoseMeasurement with identity orientation by default."""
    def _make(stamp, position=(0.0, 0.0, 0.0), orientation=IDENTITY_QUAT, frame_id='world'):
        return PoseMeasurement(stamp_ns=int(round(stamp * 1e9)), position=tuple(position),
                               orientation=tuple(orientation), frame_id=frame_id)
    return _make


@pytest.fixture
def numpy_seed():
    """Set numpy random seed for reproducible tests."""
    np.random.seed(42)
    yield


def _quat_from_euler(roll, pitch, yaw):
    cr, sr = math.cos(roll / 2.0), math.sin(roll / 2.0)
    cp, sp = math.cos(pitch / 2.0), math.sin(pitch / 2.0)
    cy, sy = math.cos(yaw / 2.0), math.sin(yaw / 2.0)
    # ZYX (roll=x, pitch=y, yaw=z), returned as (x, y, z, w)
    return (sr*cp*cy - cr*sp*sy,
            cr*sp*cy + sr*cp*sy,
            cr*cp*sy - sr*sp*cy,
            cr*cp*cy + sr*sp*sy)


@pytest.fixture
def quat_from_euler():
    """roll/pitch/yaw [rad] -> unit quaternion (x, y, z, w)."""
    return _quat_from_euler

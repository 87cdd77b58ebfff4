from dataclasses import dataclass

import numpy as np

# fixed per-axis measurement std-dev of the positioning system [m]
MEAS_NOISE_STD = 1e-2
INITIAL_COVARIANCE_SCALE = 1.0


class ConfigurationError(ValueError):
    """Start-up configuration that the node cannot run with."""


@dataclass(frozen=True)
class GpsOdomConfig:
    quad_pose_topic: str
    max_accel: float = 5.0
    gps_fps: float = 20.0
    publish_tf: bool = True
    child_frame_id: str = 'base_link'
    hypothesis_test_threshold: float = 0.5
    mocap_topic: str = '/mavros/mocap/pose'
    mocap_frame_id: str = 'fcu'

    def validate(self):
        if not self.quad_pose_topic:
            raise ConfigurationError("gps_odom: quad_pose_topic required")
        if self.publish_tf and not self.child_frame_id:
            raise ConfigurationError("gps_odom: child_frame_id required for publishing tf")
        if not self.gps_fps > 0.0:
            raise ConfigurationError(f"gps_odom: gps_fps must be > 0, got {self.gps_fps}")
        return self

    @property
    def dt(self):
        """nominal sample period of the positioning system"""
        return 1.0 / self.gps_fps

    def process_noise_diag(self):
        # a_max over one period: displacement 0.5*a*dt^2, velocity change a*dt
        dt = self.dt
        pos = 0.5 * self.max_accel * dt * dt
        vel = self.max_accel * dt
        return np.square(np.array([pos, pos, pos, vel, vel, vel], dtype=float))

    @staticmethod
    def measurement_noise_diag():
        return np.square(np.full(3, MEAS_NOISE_STD, dtype=float))

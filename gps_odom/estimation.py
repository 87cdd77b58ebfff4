"""
Measurement-driven fusion: filter start-up, the per-message predict/correct
sequence, and finite-difference angular velocity.

Everything here is per instance. Two nodes in one process never share
clocks or the previous rotation.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from gps_odom.config import INITIAL_COVARIANCE_SCALE
from gps_odom.kalman_filter import STATE_DIM
from gps_odom.tft_shim import quaternion_to_matrix, vee

ANGULAR_DT_EPS = 1e-6


@dataclass(frozen=True)
class PoseMeasurement:
    stamp_ns: int                                  # integer nanoseconds
    position: Tuple[float, float, float]
    orientation: Tuple[float, float, float, float]  # x, y, z, w
    frame_id: str = ''

    @property
    def stamp(self):
        """seconds"""
        return self.stamp_ns / 1e9


@dataclass(frozen=True)
class FusionResult:
    dt_proc: float
    dt_meas: float
    state: np.ndarray
    covariance: np.ndarray
    # a-priori values, kept for diagnostics only
    prior_state: np.ndarray
    prior_covariance: np.ndarray
    innovation_distance: Optional[float] = None


def initialize_filter(kf, config, initial_position):
    """Seed kf with the first measured position, zero velocity and a loose prior."""
    x0 = np.zeros(STATE_DIM)
    x0[:3] = np.asarray(initial_position, dtype=float)
    kf.initialize(x0,
                  INITIAL_COVARIANCE_SCALE * np.eye(STATE_DIM),
                  np.diag(config.process_noise_diag()),
                  np.diag(config.measurement_noise_diag()))
    return kf


class ClockPair:
    """
    Last-seen stamps for the predict step and for the correct step.

    Stamps are integer nanoseconds; only the difference is turned into
    seconds, so epoch-scale stamps keep full resolution.
    """

    def __init__(self):
        self.t_last_proc_ns = None
        self.t_last_meas_ns = None

    def proc_dt(self, stamp_ns):
        if self.t_last_proc_ns is None:
            self.t_last_proc_ns = stamp_ns
        dt = (stamp_ns - self.t_last_proc_ns) / 1e9
        self.t_last_proc_ns = stamp_ns
        return dt

    def meas_dt(self, stamp_ns):
        if self.t_last_meas_ns is None:
            self.t_last_meas_ns = stamp_ns
        dt = (stamp_ns - self.t_last_meas_ns) / 1e9
        self.t_last_meas_ns = stamp_ns
        return dt


class FusionOrchestrator:
    """
    Runs time-update then measurement-update for each pose.

    Every measurement is accepted. ``hypothesis_test_threshold`` is carried
    for a future gating step and is not consulted; the a-priori estimate and
    the innovation's Mahalanobis distance are returned for diagnostics.
    """

    def __init__(self, kf, hypothesis_test_threshold=0.5):
        self.kf = kf
        self.hypothesis_test_threshold = hypothesis_test_threshold
        self.clocks = ClockPair()

    def process(self, meas: PoseMeasurement) -> FusionResult:
        dt_proc = self.clocks.proc_dt(meas.stamp_ns)
        self.kf.time_update(dt_proc)

        prior_cov = self.kf.get_covariance()
        prior_state = self.kf.get_state()
        z = np.asarray(meas.position, dtype=float)
        distance = self._innovation_distance(z)

        dt_meas = self.clocks.meas_dt(meas.stamp_ns)
        self.kf.measurement_update(z, dt_meas)

        return FusionResult(dt_proc=dt_proc,
                            dt_meas=dt_meas,
                            state=self.kf.get_state(),
                            covariance=self.kf.get_covariance(),
                            prior_state=prior_state,
                            prior_covariance=prior_cov,
                            innovation_distance=distance)

    def _innovation_distance(self, z):
        innovation = self.kf.innovation(z)
        if innovation is None:
            return None
        y, S = innovation
        return float(np.sqrt(y @ np.linalg.solve(S, y)))


class AngularVelocityEstimator:
    """w_hat = dR/dt * R^T with a one-step backward difference."""

    def __init__(self, eps=ANGULAR_DT_EPS):
        self.eps = eps
        self.R_prev = np.eye(3)
        self.omega = np.zeros(3)

    def update(self, orientation, dt):
        R = quaternion_to_matrix(orientation)
        if dt > self.eps:
            R_dot = (R - self.R_prev) / dt
            self.omega = vee(R_dot @ R.T)
        self.R_prev = R
        return self.omega.copy()

"""
Recursive filters for position/velocity estimation.

State layout is x = [px, py, pz, vx, vy, vz]; measurements are positions.
The node only talks to a filter through RecursiveFilter, so another noise
model can be dropped in without touching the fusion sequence.
"""

from abc import ABC, abstractmethod

import numpy as np

STATE_DIM = 6
MEAS_DIM = 3


class RecursiveFilter(ABC):
    """predict/correct estimator over a 6-d position+velocity state"""

    @abstractmethod
    def initialize(self, state, covariance, process_noise, measurement_noise):
        ...

    @abstractmethod
    def time_update(self, dt):
        ...

    @abstractmethod
    def measurement_update(self, measurement, dt):
        ...

    @abstractmethod
    def get_state(self):
        ...

    @abstractmethod
    def get_covariance(self):
        ...

    def innovation(self, measurement):
        """(y, S) of a measurement against the current state, or None if not provided."""
        return None


def _as_matrix(value, n, name):
    m = np.asarray(value, dtype=float)
    if m.ndim == 1:
        m = np.diag(m)
    if m.shape != (n, n):
        raise ValueError(f"{name} must be {n}x{n} (or a length-{n} diagonal), got shape {m.shape}")
    return m.copy()


class ConstantVelocityKalmanFilter(RecursiveFilter):
    """
    Linear Kalman filter with a constant-velocity motion model.

        predict:  x <- F x,  P <- F P F^T + Q,  F = [[I, dt I], [0, I]]
        correct:  K = P H^T (H P H^T + R)^-1,  H = [I 0]

    Q is applied once per time_update regardless of dt; it is derived
    from the nominal sample period at start-up.
    """

    def __init__(self):
        self._x = None
        self._P = None
        self._Q = None
        self._R = None
        self._H = np.hstack([np.eye(MEAS_DIM), np.zeros((MEAS_DIM, STATE_DIM - MEAS_DIM))])

    @property
    def initialized(self):
        return self._x is not None

    def initialize(self, state, covariance, process_noise, measurement_noise):
        x = np.asarray(state, dtype=float).reshape(-1)
        if x.shape != (STATE_DIM,):
            raise ValueError(f"state must have {STATE_DIM} elements, got {x.size}")
        self._P = _as_matrix(covariance, STATE_DIM, "covariance")
        self._Q = _as_matrix(process_noise, STATE_DIM, "process_noise")
        self._R = _as_matrix(measurement_noise, MEAS_DIM, "measurement_noise")
        self._x = x.copy()

    def _require_init(self):
        if not self.initialized:
            raise RuntimeError("filter used before initialize()")

    @staticmethod
    def transition(dt):
        F = np.eye(STATE_DIM)
        F[:3, 3:] = dt * np.eye(3)
        return F

    def time_update(self, dt):
        self._require_init()
        F = self.transition(float(dt))
        self._x = F @ self._x
        self._P = F @ self._P @ F.T + self._Q

    def innovation(self, measurement):
        """(y, S) of a position measurement against the current state; no mutation."""
        self._require_init()
        z = np.asarray(measurement, dtype=float).reshape(-1)
        if z.shape != (MEAS_DIM,):
            raise ValueError(f"measurement must have {MEAS_DIM} elements, got {z.size}")
        y = z - self._H @ self._x
        S = self._H @ self._P @ self._H.T + self._R
        return y, S

    def measurement_update(self, measurement, dt):
        # dt is part of the interface; the linear position update does not use it
        y, S = self.innovation(measurement)
        K = self._P @ self._H.T @ np.linalg.inv(S)
        self._x = self._x + K @ y
        P = (np.eye(STATE_DIM) - K @ self._H) @ self._P
        self._P = 0.5 * (P + P.T)

    def get_state(self):
        self._require_init()
        return self._x.copy()

    def get_covariance(self):
        self._require_init()
        return self._P.copy()

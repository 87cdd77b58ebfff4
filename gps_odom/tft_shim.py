import numpy as np


def quaternion_to_matrix(q):
    """(x,y,z,w) -> 3x3 rotation matrix. Assumes a unit quaternion."""
    x, y, z, w = (float(c) for c in q)
    xx, yy, zz = x*x, y*y, z*z
    xy, xz, yz = x*y, x*z, y*z
    wx, wy, wz = w*x, w*y, w*z
    return np.array([[1.0 - 2.0*(yy + zz), 2.0*(xy - wz),       2.0*(xz + wy)],
                     [2.0*(xy + wz),       1.0 - 2.0*(xx + zz), 2.0*(yz - wx)],
                     [2.0*(xz - wy),       2.0*(yz + wx),       1.0 - 2.0*(xx + yy)]],
                    dtype=float)


def vee(W):
    """Skew-symmetric 3x3 -> (wx, wy, wz), read from the lower/upper off-diagonals."""
    return np.array([W[2, 1], W[0, 2], W[1, 0]], dtype=float)

"""
Pose-to-odometry fusion for an external positioning system (mocap / GPS).

Nodes:
- gps_odom: Kalman-filtered odometry, local odometry, mocap relay and tf
"""

__version__ = '0.1.0'

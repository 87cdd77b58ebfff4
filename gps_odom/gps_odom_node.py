#!/usr/bin/env python3
import rclpy
from rclpy.logging import get_logger
from rclpy.node import Node
from rclpy.time import Time
from rclpy.wait_for_message import wait_for_message
from geometry_msgs.msg import PoseStamped, TransformStamped
from nav_msgs.msg import Odometry
from std_msgs.msg import Header
from tf2_ros import TransformBroadcaster

from gps_odom.composer import compose_global, compose_local, compose_relay, covariance_to_ros
from gps_odom.config import GpsOdomConfig
from gps_odom.estimation import (AngularVelocityEstimator, FusionOrchestrator,
                                 PoseMeasurement, initialize_filter)
from gps_odom.kalman_filter import ConstantVelocityKalmanFilter


def measurement_from_msg(msg: PoseStamped) -> PoseMeasurement:
    p = msg.pose.position
    o = msg.pose.orientation
    return PoseMeasurement(stamp_ns=Time.from_msg(msg.header.stamp).nanoseconds,
                           position=(p.x, p.y, p.z),
                           orientation=(o.x, o.y, o.z, o.w),
                           frame_id=msg.header.frame_id)


def odometry_msg(view, header) -> Odometry:
    odom = Odometry()
    odom.header = header
    odom.child_frame_id = view.child_frame_id
    odom.pose.pose.position.x = float(view.position[0])
    odom.pose.pose.position.y = float(view.position[1])
    odom.pose.pose.position.z = float(view.position[2])
    odom.pose.pose.orientation.x = float(view.orientation[0])
    odom.pose.pose.orientation.y = float(view.orientation[1])
    odom.pose.pose.orientation.z = float(view.orientation[2])
    odom.pose.pose.orientation.w = float(view.orientation[3])
    odom.twist.twist.linear.x = float(view.linear_velocity[0])
    odom.twist.twist.linear.y = float(view.linear_velocity[1])
    odom.twist.twist.linear.z = float(view.linear_velocity[2])
    odom.twist.twist.angular.x = float(view.angular_velocity[0])
    odom.twist.twist.angular.y = float(view.angular_velocity[1])
    odom.twist.twist.angular.z = float(view.angular_velocity[2])
    odom.pose.covariance = covariance_to_ros(view.pose_covariance)
    odom.twist.covariance = covariance_to_ros(view.twist_covariance)
    return odom


def pose_stamped_msg(view, stamp) -> PoseStamped:
    p = PoseStamped()
    p.header = Header()
    p.header.stamp = stamp
    p.header.frame_id = view.frame_id
    p.pose.position.x = float(view.position[0])
    p.pose.position.y = float(view.position[1])
    p.pose.position.z = float(view.position[2])
    p.pose.orientation.x = float(view.orientation[0])
    p.pose.orientation.y = float(view.orientation[1])
    p.pose.orientation.z = float(view.orientation[2])
    p.pose.orientation.w = float(view.orientation[3])
    return p


class GpsOdom(Node):
    def __init__(self, node_name='gps_odom', **kwargs):
        super().__init__(node_name, **kwargs)

        # ---------- params ----------
        self.declare_parameter('quad_pose_topic', '')
        self.declare_parameter('max_accel', 5.0)
        self.declare_parameter('gps_fps', 20.0)
        self.declare_parameter('publish_tf', True)
        self.declare_parameter('child_frame_id', 'base_link')
        self.declare_parameter('hypothesis_test_threshold', 0.5)
        self.declare_parameter('mocap_topic', '/mavros/mocap/pose')
        self.declare_parameter('mocap_frame_id', 'fcu')

        self.config = None
        self.init_pose = None
        self.kf = ConstantVelocityKalmanFilter()
        self.fusion = None
        self.angular = AngularVelocityEstimator()
        self.tf_broadcaster = None

    def load_config(self) -> GpsOdomConfig:
        return GpsOdomConfig(
            quad_pose_topic=str(self.get_parameter('quad_pose_topic').value),
            max_accel=float(self.get_parameter('max_accel').value),
            gps_fps=float(self.get_parameter('gps_fps').value),
            publish_tf=bool(self.get_parameter('publish_tf').value),
            child_frame_id=str(self.get_parameter('child_frame_id').value),
            hypothesis_test_threshold=float(self.get_parameter('hypothesis_test_threshold').value),
            mocap_topic=str(self.get_parameter('mocap_topic').value),
            mocap_frame_id=str(self.get_parameter('mocap_frame_id').value),
        ).validate()

    def start(self, initial_pose=None):
        """Resolve params, wait for the first pose, init the filter and wire up topics."""
        self.config = cfg = self.load_config()
        log = self.get_logger()
        log.info(f"Kalman Filter Node started! Listening to ROS topic: {cfg.quad_pose_topic}")

        if initial_pose is None:
            log.info("Waiting for first position measurement...")
            initial_pose = self.wait_for_initial_pose()
        self.init_pose = measurement_from_msg(initial_pose)
        px, py, pz = self.init_pose.position
        log.info(f"Initial position: {px:f}\t{py:f}\t{pz:f}")

        log.info(f"max_accel: {cfg.max_accel:f}")
        log.info(f"publish_tf: {cfg.publish_tf}")
        log.info(f"child_frame_id: {cfg.child_frame_id}")
        log.info(f"ROS topic: {cfg.quad_pose_topic}")
        log.info(f"Node name: {self.get_fully_qualified_name()}")
        log.info(f"gps_fps: {cfg.gps_fps:f}")

        initialize_filter(self.kf, cfg, self.init_pose.position)
        self.fusion = FusionOrchestrator(self.kf, cfg.hypothesis_test_threshold)

        # pubs / tf
        self.odom_pub = self.create_publisher(Odometry, '~/odom', 10)
        self.local_odom_pub = self.create_publisher(Odometry, '~/local_odom', 10)
        self.mocap_pub = self.create_publisher(PoseStamped, cfg.mocap_topic, 10)
        if cfg.publish_tf:
            self.tf_broadcaster = TransformBroadcaster(self)

        self.gps_sub = self.create_subscription(PoseStamped, cfg.quad_pose_topic, self.gps_cb, 10)

    def wait_for_initial_pose(self) -> PoseStamped:
        ok, msg = wait_for_message(PoseStamped, self, self.config.quad_pose_topic)
        if not ok:
            raise RuntimeError(f"gps_odom: no message received on {self.config.quad_pose_topic}")
        return msg

    def gps_cb(self, msg: PoseStamped):
        meas = measurement_from_msg(msg)
        fused = self.fusion.process(meas)
        omega = self.angular.update(meas.orientation, fused.dt_proc)

        self.get_logger().debug(
            f"dt_proc={fused.dt_proc:.4f} dt_meas={fused.dt_meas:.4f} "
            f"innovation_distance={fused.innovation_distance}")

        odom = compose_global(meas, fused, omega)
        odom_msg = odometry_msg(odom, msg.header)
        self.odom_pub.publish(odom_msg)

        if self.config.publish_tf:
            self.publish_transform(odom_msg.pose.pose, odom_msg.header, self.config.child_frame_id)

        local = compose_local(odom, self.init_pose.position)
        self.local_odom_pub.publish(odometry_msg(local, msg.header))

        # raw pose for the px4 mocap input
        relay = compose_relay(meas, self.config.mocap_frame_id)
        self.mocap_pub.publish(pose_stamped_msg(relay, msg.header.stamp))

    def publish_transform(self, pose, header, child_frame_id):
        tf = TransformStamped()
        tf.header = header
        tf.child_frame_id = child_frame_id
        tf.transform.translation.x = pose.position.x
        tf.transform.translation.y = pose.position.y
        tf.transform.translation.z = pose.position.z
        tf.transform.rotation = pose.orientation
        self.tf_broadcaster.sendTransform(tf)


def main(args=None):
    rclpy.init(args=args)
    node = None
    code = 0
    try:
        # parameter declaration can already fail on a mistyped YAML value
        node = GpsOdom()
        node.start()
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        if node is None:
            get_logger('gps_odom').error(f"gps_odom: {e}")
        else:
            node.get_logger().error(f"{node.get_namespace()}: {e}")
        code = 1
    finally:
        if node is not None:
            node.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()
    return code


if __name__ == '__main__':
    raise SystemExit(main())

import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch_ros.actions import Node
from launch.substitutions import LaunchConfiguration
from launch.actions import DeclareLaunchArgument


def generate_launch_description():
    default_params = os.path.join(get_package_share_directory('gps_odom'), 'params', 'gps_odom.yaml')

    return LaunchDescription([
        DeclareLaunchArgument('params', default_value=default_params,
                              description='Path to a YAML with node parameters'),
        DeclareLaunchArgument('namespace', default_value='quad',
                              description='Namespace for the odom / local_odom outputs'),

        Node(
            package='gps_odom',
            executable='gps_odom',
            name='gps_odom',
            namespace=LaunchConfiguration('namespace'),
            output='screen',
            parameters=[LaunchConfiguration('params')]
        )
    ])

from setuptools import setup

package_name = 'gps_odom'

setup(
    name=package_name,
    version='0.1.0',
    packages=[package_name],
    data_files=[
        ('share/ament_index/resource_index/packages',
         ['resource/' + package_name]),
        ('share/' + package_name, ['package.xml']),
        ('share/' + package_name + '/launch', ['launch/gps_odom.launch.py']),
        ('share/' + package_name + '/params', ['params/gps_odom.yaml']),
    ],
    install_requires=['setuptools', 'numpy'],
    extras_require={'test': ['pytest']},
    zip_safe=True,
    maintainer='Moon Tracks',
    maintainer_email='you@example.com',
    description='Kalman-filtered odometry from an external pose measurement stream.',
    license='MIT',
    tests_require=['pytest'],
    entry_points={
        'console_scripts': [
            'gps_odom = gps_odom.gps_odom_node:main',
        ],
    },
)

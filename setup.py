from setuptools import setup, find_packages

setup(
    name="mysql_workload",
    version="0.1.0",
    packages=find_packages(include=["mysql_workload", "mysql_workload.*"]),
    install_requires=[
        "paramiko",
        "psutil",
        "pyyaml",
        "sqlalchemy",
        "mysql-connector-python",
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'mysql-workload-capture=mysql_workload.cli.capture:main',
            'mysql-workload-replay=mysql_workload.cli.replay:main',
            'mysql-slave-warmer=mysql_workload.cli.warmer:main',
        ],
    },
    author="MySQL Workload Developers",
    description="Capture MySQL production workload, replay it on a target and keep slaves warm",
    keywords="mysql, benchmark, tcpdump, pt-query-digest, percona-playback, warmup",
    url="",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Topic :: Database",
    ],
    python_requires=">=3.8",
)

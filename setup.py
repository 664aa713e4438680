#!/usr/bin/python
from setuptools import setup, find_packages

setup(
      name='pyrcs',
      version='0.1.0',
      description='pyrcs - run a command on a remote host over SSH',
      author='pyrcs developers',
      license='MIT',
      packages=find_packages(".", exclude=["pyrcs.tests"]),
      include_package_data=True,
      zip_safe=False,
      # 安装依赖的其他包
      install_requires = [
        "asyncssh",
        "paramiko",
        "click",
        "rich",
        "marshmallow",
        "marshmallow-dataclass",
      ],
      extras_require={
        "test": ["pytest"],
      },
    # 设置程序的入口
    entry_points={
        'console_scripts':[
            'pyrcs = pyrcs.__main__:main'
        ]
    },
    python_requires='>=3.11'
)

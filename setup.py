# Copyright 2025-2026 Dimensional Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from setuptools import find_packages, setup

setup(
    name="imtoggle",
    version="0.1.0",
    description="Republish camera images in color or grayscale, switchable at runtime",
    packages=find_packages(include=["imtoggle", "imtoggle.*"]),
    package_dir={"": "."},
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.26",
        "opencv-python",
        "reactivex",
        "structlog>=24.1",
        "rich",
        "pydantic>=2",
        "pydantic-settings>=2",
        "typer>=0.12",
        "lcm",
    ],
    extras_require={
        "test": [
            "pytest>=8",
        ],
    },
    entry_points={
        "console_scripts": [
            "imtoggle=imtoggle.cli.imtoggle_cli:main",
        ],
    },
)

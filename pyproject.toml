[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nrfhwsim"
version = "0.1.0"
description = "Behavioural models of nRF52 timing peripherals on a simulated clock: RTC, TIMER, interrupt controller, BLE CRC and crystal oscillator drift"
requires-python = ">=3.10"
dependencies = []
keywords = ["nrf52", "simulation", "emulator", "rtc", "timer", "interrupts", "ble", "crc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nrfhwsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

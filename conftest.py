"""Root pytest configuration for faultsweep."""

pytest_plugins = ["faultsweep.pytest_plugin", "pytester"]

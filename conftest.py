"""Configures pytest further: slow tests run unless skipped, extreme ones only on request."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pytest


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip tests generating real keys")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run tests generating very large keys")


def pytest_collection_modifyitems(config, items):
    markers = {}
    if config.getoption("--skip-slow"):
        markers["slow"] = pytest.mark.skip(reason="Slow test: drop --skip-slow to run")
    if not config.getoption("--run-extreme"):
        markers["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    for item in items:
        for keyword, marker in markers.items():
            if keyword in item.keywords:
                item.add_marker(marker)

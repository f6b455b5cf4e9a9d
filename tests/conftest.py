"""Shared pytest fixtures for ldgen tests."""

import json

import pytest

from device_factory import catalog_entry, make_pic32mx, make_pic32mz, make_same70, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def same70():
    return make_same70()


@pytest.fixture
def pic32mx():
    return make_pic32mx()


@pytest.fixture
def pic32mz():
    return make_pic32mz()


@pytest.fixture
def catalog_file(tmp_path):
    """JSON catalog holding one ARM and two MIPS32 devices"""
    path = tmp_path / 'devices.json'
    devices = [make_same70(), make_pic32mx(), make_pic32mz()]
    path.write_text(json.dumps({'devices': [catalog_entry(d) for d in devices]}), encoding='utf-8')
    return path

import pytest

from mediadeck.config.loader import AppConfig
from mediadeck.storage.models import PhysicalDrive, StorageGroup, StorageSlot


@pytest.fixture
def mounts(tmp_path):
    """Two simulated drives: Vol-A with one project, Vol-B with none."""
    master = tmp_path / "vol-a"
    backup = tmp_path / "vol-b"
    (master / "Projects" / "Trip2024").mkdir(parents=True)
    (master / "Projects" / "_GLOBAL_" / "Assets").mkdir(parents=True)
    (backup / "Projects").mkdir(parents=True)
    return {"master": master, "backup": backup}


@pytest.fixture
def app_config():
    return AppConfig(storage={
        "1": StorageGroup(
            master=StorageSlot(serial_number="AAA", label="Vol-A"),
            backups={1: StorageSlot(serial_number="BBB", label="Vol-B")},
        )
    })


@pytest.fixture
def drives(mounts):
    return [
        PhysicalDrive(
            name="sdb",
            serial_number="AAA",
            mount_path=str(mounts["master"]),
            label="VOLA",
            manufacturer="WD",
            model="My Passport",
            filesystem_type="exfat",
            partition_kind="gpt",
            total_bytes=1000,
            used_bytes=400,
            free_bytes=600,
            health_status="Healthy",
        ),
        PhysicalDrive(name="sdc", serial_number="BBB", mount_path=str(mounts["backup"])),
    ]

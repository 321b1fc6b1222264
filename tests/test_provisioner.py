"""Tests for the provisioning pipeline."""

import pytest

from conftest import (
    DEBIAN,
    RHEL,
    FakeExecutor,
    FakeServiceManager,
    FakeSystem,
    make_backends,
    make_config,
)
from sftp_provisioner.exceptions import (
    DirectoryWithinHomeError,
    InvalidDirectoryDepthError,
    MissingSilentPasswordError,
    ServiceRestartError,
    SystemRequirementError,
    UnsupportedOSError,
)
from sftp_provisioner.provisioner import SftpProvisioner
from sftp_provisioner.sshd_config import match_group_lines
from sftp_provisioner.types import HostProfile, OSFamily, RunStatus

ALL_STEPS = [
    "install_packages",
    "provision_identity",
    "provision_directories",
    "reconcile_sshd_config",
    "reconcile_firewall",
    "restart_ssh",
]


def snapshot(backends, sshd_config):
    return (
        dict(backends.filesystem.dirs),
        {k: set(v) for k, v in backends.identity.groups.items()},
        dict(backends.identity.users),
        set(backends.firewall.persistent),
        set(backends.firewall.live),
        sshd_config.read_bytes(),
    )


def make_provisioner(config, backends, profile=DEBIAN, answer="yes", executor=None):
    return SftpProvisioner(
        config,
        system=FakeSystem(profile),
        backends=backends,
        executor=executor or FakeExecutor(),
        input_func=lambda _prompt: answer,
    )


def test_full_silent_run_on_debian(tmp_path, sshd_config_file, backends):
    config = make_config(tmp_path, port=2222, password="s3cret")

    report = make_provisioner(config, backends).run()

    assert report.status == RunStatus.COMPLETED
    assert report.exit_code == 0
    assert report.steps == ALL_STEPS
    assert backends.firewall.is_port_active(2222)
    assert not backends.firewall.is_default_ssh_allowed()
    assert backends.filesystem.dirs["/srv/sftp"] == ("root", "root", 0o755)
    assert backends.filesystem.dirs["/srv/sftp/shared"] == (
        "sftpuser",
        "sftpusers",
        0o775,
    )
    assert backends.identity.passwords == {"sftpuser": "s3cret"}
    assert ("ssh", "restart") in backends.services.actions
    text = sshd_config_file.read_text()
    assert "Port 2222" in text
    assert "ChrootDirectory /srv/sftp" in text


def test_rerun_changes_nothing(tmp_path, sshd_config_file, backends):
    config = make_config(tmp_path, port=2222, password="s3cret")
    make_provisioner(config, backends).run()
    before = snapshot(backends, sshd_config_file)
    backends.firewall.mutations.clear()
    backends.identity.mutations.clear()

    report = make_provisioner(config, backends).run()

    assert report.status == RunStatus.COMPLETED
    assert snapshot(backends, sshd_config_file) == before
    assert backends.firewall.mutations == []
    assert backends.identity.mutations == []
    assert len(match_group_lines(sshd_config_file.read_text(), "sftpusers")) == 1


def test_rhel_with_existing_stanza(tmp_path):
    sshd_config = tmp_path / "sshd_config"
    sshd_config.write_bytes(
        b"UsePAM yes\nMatch Group sftpusers\n    ForceCommand internal-sftp\n"
    )
    before = sshd_config.read_bytes()
    backends = make_backends(OSFamily.RHEL_LIKE)
    config = make_config(tmp_path, password="s3cret")

    report = make_provisioner(config, backends, profile=RHEL).run()

    assert report.status == RunStatus.COMPLETED
    assert sshd_config.read_bytes() == before
    assert ("sshd", "restart") in backends.services.actions


def test_directory_in_home_aborts_before_mutation(tmp_path, sshd_config_file, backends):
    config = make_config(tmp_path, directory="/home/sftpuser/share", password="x")

    report = make_provisioner(config, backends).run()

    assert report.status == RunStatus.FAILED
    assert report.exit_code == 1
    assert isinstance(report.error, DirectoryWithinHomeError)
    assert report.steps == []
    assert backends.packages.installed == set()
    assert backends.identity.mutations == []


def test_shallow_directory_aborts(tmp_path, sshd_config_file, backends):
    config = make_config(tmp_path, directory="/sftp", password="x")

    report = make_provisioner(config, backends).run()

    assert isinstance(report.error, InvalidDirectoryDepthError)
    assert report.steps == []


def test_empty_silent_password_aborts_before_user_creation(
    tmp_path, sshd_config_file, backends
):
    config = make_config(tmp_path, password="")

    report = make_provisioner(config, backends).run()

    assert isinstance(report.error, MissingSilentPasswordError)
    assert "sftpuser" not in backends.identity.users
    assert backends.packages.installed == set()


def test_unsupported_os(tmp_path, sshd_config_file, backends):
    config = make_config(tmp_path, password="x")
    profile = HostProfile(OSFamily.UNSUPPORTED, "rolling", "arch")

    report = make_provisioner(config, backends, profile=profile).run()

    assert isinstance(report.error, UnsupportedOSError)
    assert report.exit_code == 1


def test_requirement_issues_abort(tmp_path, sshd_config_file, backends):
    config = make_config(tmp_path, password="x")
    provisioner = make_provisioner(config, backends)
    provisioner.system = FakeSystem(
        DEBIAN, ["No root access available (need root or sudo)"]
    )

    report = provisioner.run()

    assert isinstance(report.error, SystemRequirementError)
    assert backends.packages.installed == set()


@pytest.mark.parametrize("answer", ["no", "n", "nope", "q"])
def test_declined_confirmation_cancels_cleanly(
    tmp_path, sshd_config_file, backends, answer, capsys
):
    config = make_config(tmp_path)

    report = make_provisioner(config, backends, answer=answer).run()

    assert report.status == RunStatus.CANCELLED
    assert report.exit_code == 0
    assert report.steps == []
    assert backends.packages.installed == set()
    assert "SFTP Directory: /srv/sftp/shared" in capsys.readouterr().out


@pytest.mark.parametrize("answer", ["", "y", "Y", "yes", "YES", " Yes "])
def test_accepted_confirmation_proceeds(tmp_path, sshd_config_file, backends, answer):
    config = make_config(tmp_path)

    report = make_provisioner(config, backends, answer=answer).run()

    assert report.status == RunStatus.COMPLETED
    assert backends.identity.prompted == ["sftpuser"]


def test_closed_stdin_at_confirmation_proceeds(
    tmp_path, sshd_config_file, backends, capsys
):
    def closed_stdin(_prompt):
        raise EOFError

    config = make_config(tmp_path)
    provisioner = SftpProvisioner(
        config,
        system=FakeSystem(DEBIAN),
        backends=backends,
        executor=FakeExecutor(),
        input_func=closed_stdin,
    )

    report = provisioner.run()

    assert report.status == RunStatus.COMPLETED
    assert report.steps == ALL_STEPS
    assert "Firewall: ufw" in capsys.readouterr().out


def test_silent_mode_skips_confirmation(tmp_path, sshd_config_file, backends):
    def no_prompt(_prompt):
        raise AssertionError("silent mode must not prompt")

    config = make_config(tmp_path, password="s3cret")
    provisioner = SftpProvisioner(
        config,
        system=FakeSystem(DEBIAN),
        backends=backends,
        executor=FakeExecutor(),
        input_func=no_prompt,
    )

    assert provisioner.run().status == RunStatus.COMPLETED


def test_restart_failure_is_fatal(tmp_path, sshd_config_file):
    backends = make_backends()
    backends = backends._replace(services=FakeServiceManager(fail={("ssh", "restart")}))
    config = make_config(tmp_path, password="s3cret")
    executor = FakeExecutor()

    report = make_provisioner(config, backends, executor=executor).run()

    assert report.status == RunStatus.FAILED
    assert report.exit_code == 1
    assert isinstance(report.error, ServiceRestartError)
    assert "Inspect" in str(report.error)
    assert report.steps == ALL_STEPS[:-1]
    assert ("sshd", "-t") in executor.calls
    # no rollback of the appended stanza
    assert "Match Group sftpusers" in sshd_config_file.read_text()

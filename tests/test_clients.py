"""Tests for queue client construction."""

import pytest

from sqs_redriver import TransportInitError, create_sqs_client


@pytest.fixture
def isolated_aws_env(monkeypatch, tmp_path):
    """Keep the developer's AWS configuration out of the tests."""
    for var in ("AWS_DEFAULT_REGION", "AWS_REGION", "AWS_PROFILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")


def test_create_sqs_client_with_region(isolated_aws_env):
    """Test a client is built for the requested region without contacting AWS."""
    client = create_sqs_client("eu-west-1")

    assert client.meta.service_model.service_name == "sqs"
    assert client.meta.region_name == "eu-west-1"


def test_create_sqs_client_region_from_environment(isolated_aws_env, monkeypatch):
    """Test the region falls back to the environment."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-southeast-2")

    client = create_sqs_client()

    assert client.meta.region_name == "ap-southeast-2"


def test_create_sqs_client_without_region_fails(isolated_aws_env):
    """Test a missing region surfaces as TransportInitError."""
    with pytest.raises(TransportInitError, match="can't create an AWS session"):
        create_sqs_client()

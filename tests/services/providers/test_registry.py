import pytest
from pydantic import SecretStr

from common.config import Config
from services.providers.catalog import PROVIDER_PROFILES, get_profile
from services.providers.registry import build_providers


def test_catalog_ids_are_unique():
    ids = [p.id for p in PROVIDER_PROFILES]
    assert len(ids) == len(set(ids)) == 15


def test_get_profile_unknown():
    with pytest.raises(ValueError, match="Unknown provider 'nope'"):
        get_profile("nope")


def test_build_providers_skips_unconfigured():
    settings = Config(maersk_api_key=SecretStr("m-key"), shipsgo_api_key=SecretStr(""))

    providers = build_providers(settings)

    assert [p.id for p in providers] == ["maersk"]
    assert providers[0].api_key == "m-key"


def test_build_providers_in_declaration_order():
    settings = Config(maersk_api_key=SecretStr("m"), shipsgo_api_key=SecretStr("s"))
    assert [p.id for p in build_providers(settings)] == ["maersk", "shipsgo"]

"""
Configuration Source Tests
==========================

JSON batch parsing, file/static/callable sources and how the engine wires
them from configuration.
"""

import json

import pytest

from local_time.contracts.base import (
    ErrorCode, InvalidUniverseIdError, LayerType, RealityRelationType,
    TimePrecision, UniverseType,
)
from local_time.domain.serialization import (
    ConfigBatch, MalformedConfigError, batch_from_dict, dumps_batch,
    loads_batch, parse_nanoseconds, parse_precision, universe_from_dict,
)
from local_time.engine import CONFIG_PATH_ENV, LocalTime, LocalTimeConfig, SourcesConfig
from local_time.observability import ObservabilityConfig
from local_time.registry import UNIX_EPOCH_KEY, RegistryConfig
from local_time.registry.builtin import builtin_batch
from local_time.sources import (
    CallableSource, ConfigSourceError, JsonFileSource, StaticBatchSource,
)


MOON_FILM = {
    "universeId": "film:first_man:2018",
    "type": "film",
    "identifiers": {"primary": "film:first_man:2018", "aliases": ["first_man"]},
    "realityRelation": {
        "type": "historical_fiction",
        "fictionalizationDegree": 0.3,
        "realityAnchors": [
            {"realEventId": "event:moon_landing_1969", "relationshipType": "depicts", "confidence": 0.9},
        ],
        "claimsHistoricalAccuracy": True,
    },
    "layers": [
        {
            "layerId": "story",
            "type": "recreation",
            "epochs": {
                "story": {
                    "epochId": "first_man:story",
                    "startTime": "-252460800000000000",
                    "endTime": -173836800000000000,
                    "precision": "day",
                },
            },
        },
    ],
    "temporalWindows": [
        {
            "windowId": "first_man:landing",
            "start": -14_256_000_000_000_000,
            "end": -14_169_600_000_000_000,
            "precision": "DAY",
            "aliases": [{"format": "year", "value": "1969"}],
        },
    ],
    "metadata": {"canonicalName": "First Man", "cultural_significance": 0.7},
}


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestParsing:

    def test_camel_case_universe(self):
        universe = universe_from_dict(MOON_FILM)
        assert universe.universe_id.value == "film:first_man:2018"
        assert universe.type == UniverseType.FILM
        assert universe.reality_relation.type == RealityRelationType.HISTORICAL_FICTION
        assert universe.reality_relation.reality_anchors[0].confidence == 0.9
        assert universe.reality_relation.claims_historical_accuracy is True
        assert universe.layers[0].layer_type == LayerType.RECREATION
        epoch = universe.layers[0].epochs["story"]
        assert epoch.start_time == -252460800000000000
        assert epoch.precision == TimePrecision.DAY
        assert universe.temporal_windows[0].aliases[0].value == "1969"
        assert universe.canonical_name == "First Man"

    @pytest.mark.parametrize("raw,expected", [
        (5, 5),
        (5.0, 5),
        ("-600000000000", -600000000000),
        ("12n", 12),
        (" 7 ", 7),
    ])
    def test_parse_nanoseconds(self, raw, expected):
        assert parse_nanoseconds(raw) == expected

    @pytest.mark.parametrize("raw", [True, 1.5, "soon", None, [1]])
    def test_parse_nanoseconds_rejects(self, raw):
        with pytest.raises(MalformedConfigError):
            parse_nanoseconds(raw)

    @pytest.mark.parametrize("raw,expected", [
        (None, TimePrecision.SECOND),
        ("millisecond", TimePrecision.MILLISECOND),
        (1_000_000_000, TimePrecision.SECOND),
        ("60000000000", TimePrecision.MINUTE),
    ])
    def test_parse_precision(self, raw, expected):
        assert parse_precision(raw) == expected

    def test_missing_required_field(self):
        payload = dict(MOON_FILM)
        del payload["realityRelation"]
        with pytest.raises(MalformedConfigError, match="reality_relation"):
            universe_from_dict(payload)

    def test_unknown_enum_value(self):
        with pytest.raises(MalformedConfigError, match="UniverseType"):
            universe_from_dict({**MOON_FILM, "type": "hologram"})

    def test_invalid_universe_id(self):
        with pytest.raises(InvalidUniverseIdError):
            universe_from_dict({**MOON_FILM, "universeId": "first man"})

    def test_network_requires_an_id(self):
        with pytest.raises(MalformedConfigError):
            batch_from_dict({"networks": [{"name": "nameless"}]})

    def test_network_members_deduplicated(self):
        batch = batch_from_dict({"networks": [{
            "networkId": "space",
            "universes": ["nasa:apollo11:1969", "nasa:apollo11:1969"],
        }]})
        assert len(batch.networks[0].universes) == 1

    def test_invalid_json(self):
        with pytest.raises(MalformedConfigError, match="invalid JSON"):
            loads_batch("{not json")

    def test_builtin_batch_survives_json(self):
        batch = builtin_batch()
        restored = loads_batch(dumps_batch(batch))
        assert restored.universes == batch.universes
        assert restored.networks == batch.networks
        assert restored.version == "builtin"


class TestJsonFileSource:

    def test_missing_optional_file(self, tmp_path):
        assert JsonFileSource(tmp_path / "absent.json").load_batch() is None

    def test_missing_required_file(self, tmp_path):
        with pytest.raises(ConfigSourceError) as excinfo:
            JsonFileSource(tmp_path / "absent.json", required=True).load_batch()
        assert excinfo.value.error.code == ErrorCode.SOURCE_UNREADABLE

    def test_directory_is_unreadable(self, tmp_path):
        with pytest.raises(ConfigSourceError) as excinfo:
            JsonFileSource(tmp_path).load_batch()
        assert excinfo.value.error.code == ErrorCode.SOURCE_UNREADABLE

    def test_malformed_payload(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(ConfigSourceError) as excinfo:
            JsonFileSource(path).load_batch()
        assert excinfo.value.error.code == ErrorCode.MALFORMED_PAYLOAD
        assert excinfo.value.error.context == (("source_id", str(path)),)

    def test_loads_batch(self, tmp_path):
        path = _write(tmp_path / "universes.json", {"version": "2", "universes": [MOON_FILM]})
        batch = JsonFileSource(path).load_batch()
        assert batch.version == "2"
        assert batch.universes[0].universe_id.value == "film:first_man:2018"


class TestOtherSources:

    def test_static_source(self):
        batch = ConfigBatch()
        source = StaticBatchSource(batch, source_id="inline")
        assert source.load_batch() is batch
        assert (source.source_id, source.source_type) == ("inline", "static")

    def test_callable_returning_dict(self):
        batch = CallableSource(lambda: {"universes": [MOON_FILM]}, source_id="module").load_batch()
        assert len(batch.universes) == 1

    def test_callable_returning_bad_dict(self):
        with pytest.raises(ConfigSourceError) as excinfo:
            CallableSource(lambda: {"universes": [{"type": "film"}]}, source_id="module").load_batch()
        assert excinfo.value.error.code == ErrorCode.MALFORMED_PAYLOAD

    def test_callable_source_id_defaults_to_qualname(self):
        def contribute():
            return None
        assert CallableSource(contribute).source_id.endswith("contribute")


class TestEngineWiring:

    def test_source_order(self, tmp_path):
        extra = StaticBatchSource(ConfigBatch(), source_id="extra")
        config = SourcesConfig(
            config_paths=(str(tmp_path / "a.json"),),
            env_config_path=str(tmp_path / "env.json"),
            extra_sources=(extra,),
        )
        ids = [s.source_id for s in config.build_sources()]
        assert ids == [str(tmp_path / "env.json"), str(tmp_path / "a.json"), "extra"]

    def test_unset_sub_configs_are_filled(self):
        config = LocalTimeConfig()
        assert isinstance(config.registry, RegistryConfig)
        assert isinstance(config.sources, SourcesConfig)
        assert isinstance(config.observability, ObservabilityConfig)
        assert list(config.registry.baseline_epochs) == [UNIX_EPOCH_KEY]
        assert RegistryConfig(baseline_epochs={}).baseline_epochs == {}

    def test_from_env(self, tmp_path):
        config = LocalTimeConfig.from_env({
            CONFIG_PATH_ENV: str(tmp_path / "x.json"),
            "LOCAL_TIME_STRICT_ORDERING": "true",
        })
        assert config.sources.env_config_path == str(tmp_path / "x.json")
        assert config.registry.strict_ordering is True
        assert LocalTimeConfig.from_env({}).registry.strict_ordering is False

    def test_engine_loads_env_file_and_skips_bad_default(self, tmp_path):
        good = _write(tmp_path / "good.json", {"universes": [MOON_FILM]})
        bad = tmp_path / "bad.json"
        bad.write_text("nope", encoding="utf-8")
        config = LocalTimeConfig(sources=SourcesConfig(
            config_paths=(str(bad),), env_config_path=str(good),
        ))
        engine = LocalTime(config).initialize()

        assert engine.get_universe("first_man").canonical_name == "First Man"
        skipped = engine.observability.get_errors()
        assert [e.entity_id for e in skipped] == [str(bad)]

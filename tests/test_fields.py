# tests/test_fields.py
from epd_parser.core.types import SetType
from epd_parser.extractors.fields import (
    DEFAULT_VALIDITY_YEARS,
    detect_set2_indicators,
    detect_standard_set,
    extract_nmd_version,
    normalize_databases,
    normalize_declared_unit,
    normalize_lca_method,
    normalize_lca_standard,
    normalize_pcr_info,
    parse_verified,
    resolve_expiration_date,
)


def test_expiration_defaults_to_five_years_after_publication():
    assert DEFAULT_VALIDITY_YEARS == 5
    assert resolve_expiration_date("2022-01-01", None) == "2027-01-01"


def test_expiration_found_in_text_wins():
    assert resolve_expiration_date("2022-01-01", "2025-06-30") == "2025-06-30"
    assert resolve_expiration_date(None, None) is None


def test_pcr_info_split():
    pcr = normalize_pcr_info("PCR Asfalt versie 1.0")
    assert pcr.name == "Asfalt"
    assert pcr.version == "1.0"

    bare = normalize_pcr_info("PCR 2.1")
    assert bare.name == "PCR"
    assert bare.version == "2.1"

    assert normalize_pcr_info(None) is None


def test_lca_standard_version_and_edition():
    lca = normalize_lca_standard("NMD Bepalingsmethode versie 1.1 (2022)")
    assert lca.name == "NMD Bepalingsmethode"
    assert lca.version == "1.1"
    assert lca.edition_year == "2022"

    unknown = normalize_lca_standard("Bepalingsmethode 2.0")
    assert unknown.version is None
    assert unknown.raw == "Bepalingsmethode 2.0"

    assert normalize_lca_standard(None).raw is None


def test_lca_method_canonical_string():
    assert normalize_lca_method("NMD Bepalingsmethode versie 1.1 (2022)") == "NMD Bepalingsmethode 1.1"
    assert normalize_lca_method("versie 1.0") == "NMD Bepalingsmethode 1.0"
    assert normalize_lca_method("Bepalingsmethode") == "NMD Bepalingsmethode"
    assert normalize_lca_method("EN 15804") == "EN 15804"


def test_databases_split_into_nmd_and_ecoinvent():
    db = normalize_databases("Nationale Milieudatabase v3.5 (obv EcoInvent v3.6)")
    assert db.canonical == "NMD v3.5 | EcoInvent v3.6"
    assert db.nmd == "NMD v3.5"
    assert db.ecoinvent == "EcoInvent v3.6"


def test_databases_fall_back_to_full_text_and_raw_value():
    db = normalize_databases("zie bijlage", "Berekend met NMD 3.7 en ecoinvent 3.8")
    assert db.canonical == "NMD v3.7 | EcoInvent v3.8"

    raw = normalize_databases("eigen database")
    assert raw.canonical == "eigen database"
    assert raw.nmd is None
    assert raw.ecoinvent is None


def test_nmd_version_ignores_determination_method_number():
    assert extract_nmd_version("NMD Bepalingsmethode 1.1") is None
    assert extract_nmd_version("NMD database v3.5") == "3.5"


def test_detect_standard_set():
    assert detect_standard_set("Resultaten SBK set 1") == SetType.SBK_SET_1
    assert detect_standard_set("volgens EN 15804+A2") == SetType.SBK_SET_2
    assert detect_standard_set("SBK set 1 en SBK-set-2") == SetType.SBK_BOTH
    assert detect_standard_set("EN15804+A1 / EN15804+A2") == SetType.SBK_BOTH
    assert detect_standard_set("geen set") == SetType.UNKNOWN


def test_detect_set2_indicators():
    assert detect_set2_indicators("GWP-total kg CO2 eq")
    assert detect_set2_indicators("ADP-MM kg Sb eq")
    assert detect_set2_indicators("PM disease incidence")
    assert not detect_set2_indicators("GWP kg CO2 eq\nMKI Euro")
    assert not detect_set2_indicators("at 3 pm")


def test_declared_unit_canonical_forms():
    assert normalize_declared_unit("1 tonne") == "1 ton"
    assert normalize_declared_unit("1 t") == "1 ton"
    assert normalize_declared_unit("1,5 stuks") == "1.5 stuk"
    assert normalize_declared_unit("1 piece") == "1 stuk"
    assert normalize_declared_unit("1  m") == "1 m"
    assert normalize_declared_unit("per meter") == "per meter"
    assert normalize_declared_unit(None) is None


def test_parse_verified():
    assert parse_verified("Yes") is True
    assert parse_verified("ja, extern") is True
    assert parse_verified("Nee") is False
    assert parse_verified("n.v.t.") is None
    assert parse_verified(None) is None

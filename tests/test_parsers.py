# tests/test_parsers.py
from pathlib import Path

import pytest

from epd_parser.core.types import SetType
from epd_parser.parsers.asphalt_ecochain import AsphaltEcochainParser, canonical_asphalt_pcr
from epd_parser.parsers.pvc_ecochain import PvcEcochainParser, extract_manufacturer, extract_verifier

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def asphalt_text():
    return (FIXTURES / "asphalt.txt").read_text(encoding="utf-8")


@pytest.fixture
def pvc_text():
    return (FIXTURES / "pvc.txt").read_text(encoding="utf-8")


def _rows(normalized):
    return {(r.indicator, r.set_type): r for r in normalized.results}


# ----------------------------------------------------------
# Asphalt
# ----------------------------------------------------------

def test_asphalt_scores(asphalt_text, pvc_text):
    parser = AsphaltEcochainParser()
    assert parser.match(asphalt_text).score == pytest.approx(1.0)
    assert parser.match(pvc_text).score == pytest.approx(0.2)
    assert parser.match("").reason == "no asphalt signals"


def test_asphalt_fields(asphalt_text):
    result = AsphaltEcochainParser().parse(asphalt_text)
    legacy = result.legacy

    assert result.parser_id == "asphalt_ecochain_v1"
    assert legacy.product_name == "EPD asfalt"
    assert legacy.functional_unit == "1 ton"
    assert legacy.producer_name == "Asfalt BV"
    assert legacy.publication_date == "2022-01-01"
    assert legacy.expiration_date == "2027-01-01"
    assert legacy.lca_method == "NMD Bepalingsmethode 1.1"
    assert legacy.pcr_version == "PCR Asfalt 1.0"
    assert legacy.database_name == "NMD v3.5 | EcoInvent v3.6"
    assert legacy.database_nmd_version == "NMD v3.5"
    assert legacy.verifier_name == "J. Doe"
    assert legacy.standard_set == SetType.SBK_SET_1


def test_asphalt_results(asphalt_text):
    result = AsphaltEcochainParser().parse(asphalt_text)
    normalized = result.normalized

    assert [r.indicator for r in normalized.results] == ["ECI", "MKI", "GWP"]
    rows = _rows(normalized)
    assert rows[("MKI", SetType.SBK_SET_1)].values == {
        "A1": 1.0, "A2": 2.0, "A3": 3.0, "A1-A3": 6.0, "D": 7.0,
    }
    assert rows[("ECI", SetType.SBK_SET_1)].values == rows[("MKI", SetType.SBK_SET_1)].values
    assert rows[("GWP", SetType.SBK_SET_1)].values["D"] == -7.0
    assert rows[("GWP", SetType.SBK_SET_1)].unit == "kg CO2 eq"

    assert len(result.legacy.impacts) == 15
    assert [m.module for m in normalized.modules_declared] == ["A1", "A2", "A3", "A1-A3", "D"]


def test_asphalt_normalized_header(asphalt_text):
    normalized = AsphaltEcochainParser().parse(asphalt_text).normalized

    assert normalized.pcr.name == "Asfalt"
    assert normalized.pcr.version == "1.0"
    assert normalized.lca_standard.version == "1.1"
    assert normalized.lca_standard.edition_year == "2022"
    assert normalized.lca_standard.raw == "NMD Bepalingsmethode versie 1.1 (2022)"
    assert normalized.raw_extract["databaseEcoinventVersion"] == "EcoInvent v3.6"


def test_asphalt_both_sets():
    text = "\n".join([
        "Product: EPD asfalt",
        "Milieu-impact SBK set 1",
        "Indicator Eenheid A1 A2 A3 A1-A3 D",
        "MKI Euro 1,00E+0 2,00E+0 3,00E+0 6,00E+0 7,00E+0",
        "Milieu-impact SBK set 2",
        "Indicator Eenheid A1 A2 A3 A1-A3 D",
        "ECI Euro 2,00E+0 2,00E+0 2,00E+0 6,00E+0 1,00E+0",
        "MKI Euro",
        "GWP-TOTAL kg CO2 eq 1,00E+0 1,00E+0 1,00E+0 3,00E+0 0",
        "Ecochain Technologies",
    ])
    result = AsphaltEcochainParser().parse(text)
    normalized = result.normalized

    assert normalized.standard_set == SetType.SBK_BOTH
    assert [(r.indicator, r.set_type) for r in normalized.results] == [
        ("ECI", SetType.SBK_SET_1),
        ("MKI", SetType.SBK_SET_1),
        ("MKI", SetType.SBK_SET_2),
        ("GWP-TOTAL", SetType.SBK_SET_2),
    ]
    rows = _rows(normalized)
    assert rows[("MKI", SetType.SBK_SET_2)].values["A1-A3"] == 6.0
    assert rows[("GWP-TOTAL", SetType.SBK_SET_2)].values["D"] == 0.0
    assert len(result.legacy.impacts) == 20


def test_asphalt_without_tables_keeps_fields():
    result = AsphaltEcochainParser().parse("Product: EPD asfalt\nDatum van publicatie: 29-02-2024")
    assert result.normalized.results == []
    assert result.legacy.expiration_date == "2029-03-01"
    assert result.legacy.standard_set == SetType.UNKNOWN


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("NL-PCR Asfalt versie 1.0", "NL-PCR Asfalt 1.0"),
        ("pcr asfalt v1.0", "PCR Asfalt 1.0"),
        ("Asfalt 2.1", "Asfalt 2.1"),
        ("PCR Beton versie 3", "Beton 3"),
        (None, None),
    ],
)
def test_canonical_asphalt_pcr(raw, expected):
    assert canonical_asphalt_pcr(raw) == expected


# ----------------------------------------------------------
# PVC
# ----------------------------------------------------------

def test_pvc_scores(pvc_text, asphalt_text):
    parser = PvcEcochainParser()
    assert parser.match(pvc_text).score == pytest.approx(1.0)
    assert parser.match(asphalt_text).score == 0.0


def test_pvc_fields(pvc_text):
    result = PvcEcochainParser().parse(pvc_text)
    normalized = result.normalized

    assert result.parser_id == "pvc_ecochain_v1"
    assert normalized.product_name == "U3 Pipe PVC 315 mm grijs"
    assert normalized.declared_unit == "1 m"
    assert normalized.manufacturer == "Wavin"
    assert normalized.raw_extract["address"] == "Stationsplein 3, Hardenberg"
    assert normalized.issue_date == "2023-05-01"
    assert normalized.valid_until == "2028-05-01"
    assert normalized.lca_standard.version == "1.1"
    assert normalized.verified is True
    assert normalized.verifier == "Martijn van Hövell - SGS Search"
    assert normalized.database == "EcoInvent v3.6"
    assert normalized.pcr is None
    assert normalized.standard_set == SetType.SBK_SET_1


def test_pvc_results(pvc_text):
    result = PvcEcochainParser().parse(pvc_text)
    normalized = result.normalized
    rows = _rows(normalized)

    assert [r.indicator for r in normalized.results] == ["ECI", "MKI", "GWP", "ADPF"]

    mki = rows[("MKI", SetType.SBK_SET_1)].values
    assert mki["A1"] == 1.0
    assert mki["C4"] == 9.0
    assert mki["D"] == 10.0
    assert mki["Total"] == 11.0

    gwp = rows[("GWP", SetType.SBK_SET_1)].values
    assert gwp["A4"] is None
    assert gwp["D"] == -0.5

    adpf = rows[("ADPF", SetType.SBK_SET_1)]
    assert adpf.unit == "MJ"
    assert [adpf.values[s] for s in ("C1", "C2", "C3", "C4", "D")] == [0.0] * 5
    assert adpf.values["Total"] == 600.0

    a4 = next(m for m in normalized.modules_declared if m.module == "A4")
    assert a4.declared is False
    assert a4.mnd is True

    assert len(result.legacy.impacts) == 20
    assert result.legacy.lca_method == "NMD Bepalingsmethode 1.1"
    assert [i.to_dict() for i in normalized.impacts] == [i.to_dict() for i in result.legacy.impacts]


def test_pvc_without_declared_set_reads_impact_section():
    text = "\n".join([
        "Product: PVC pipe",
        "Unit: 1 m",
        "Issue date: 2023-01-01",
        "LCA software: Ecochain v3.6",
        "Results",
        "Environmental impact",
        "Indicator Unit A1 A2 A3 A1-A3 D",
        "GWP-TOTAL kg CO2 eq 1,00E+0 2,00E+0 3,00E+0 6,00E+0 -1,00E+0",
        "ADP-MM kg Sb eq 1,00E-6 2,00E-6 3,00E-6 6,00E-6 0",
        "Resource use",
        "PERE MJ 1,00E+0 2,00E+0 3,00E+0 6,00E+0 0",
    ])
    normalized = PvcEcochainParser().parse(text).normalized

    assert normalized.standard_set == SetType.SBK_SET_2
    assert normalized.valid_until == "2028-01-01"
    assert [(r.indicator, r.set_type) for r in normalized.results] == [
        ("GWP-TOTAL", SetType.SBK_SET_2),
        ("ADP-MM", SetType.SBK_SET_2),
    ]
    assert normalized.results[1].values["A1"] == pytest.approx(1e-6)


def test_pvc_a2_document_without_set_heading_reads_impact_section():
    text = "\n".join([
        "Product: PVC pipe",
        "Declared according to EN 15804+A2",
        "LCA software: Ecochain v3.6",
        "Results",
        "Environmental impact",
        "Indicator Unit A1 A2 A3 A1-A3 D",
        "GWP-TOTAL kg CO2 eq 1,00E+0 2,00E+0 3,00E+0 6,00E+0 -1,00E+0",
        "ADP-MM kg Sb eq 1,00E-6 2,00E-6 3,00E-6 6,00E-6 0",
        "Resource use",
        "PERE MJ 1,00E+0 2,00E+0 3,00E+0 6,00E+0 0",
    ])
    normalized = PvcEcochainParser().parse(text).normalized

    assert normalized.standard_set == SetType.SBK_SET_2
    assert [(r.indicator, r.set_type) for r in normalized.results] == [
        ("GWP-TOTAL", SetType.SBK_SET_2),
        ("ADP-MM", SetType.SBK_SET_2),
    ]
    assert normalized.results[0].values["D"] == -1.0


def test_pvc_generic_set_heading_opens_section():
    text = "Product: PVC pipe\nSBK set 1\nGWP kg CO2 eq 1,00E+0 2,00E+0"
    normalized = PvcEcochainParser().parse(text).normalized
    assert [r.indicator for r in normalized.results] == ["GWP"]


def test_manufacturer_and_verifier_helpers():
    assert extract_manufacturer("Producent: Pipelife - NL\nAdres: Enkhuizen") == ("Pipelife", "Enkhuizen")
    assert extract_verifier("Veri er\nA. Smit") == "A. Smit"
    assert extract_verifier("nothing here") is None

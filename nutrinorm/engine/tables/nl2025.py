"""Dutch regulation tables for 2025.

``WORKING_COEFFICIENTS`` follows RVO Tabel 9 (werkingscoefficienten
stikstof).  Codes are RVO mestcodes.  Codes 30, 76, 81, 91 and 92 appear in
both the slurry and the solid-manure rows of the published table; the slurry
row is listed first and wins, and the overlap is reported as a rule
ambiguity at match time.
"""

from __future__ import annotations

from typing import Any

YEAR = 2025

SEPTEMBER_TO_JANUARY = {
    "start": "09-01",
    "end": "01-31",
    "label": "1 september t/m 31 januari",
}

GRAZING_SLURRY_CODES = ["14", "60", "18", "19"]
GRAZING_SOLID_CODES = ["10", "56", "61", "25", "26", "27", "95", "96"]
PIG_POULTRY_MINK_SOLID_CODES = [
    "23", "31", "32", "33", "35", "39", "40", "43",
    "75", "80", "97", "98", "99", "100", "101",
]
OTHER_SOLID_CODES = [
    "11", "13", "24", "30", "76", "81", "90", "91", "92",
    "102", "103", "104", "105", "106",
]

WORKING_COEFFICIENTS: list[dict[str, Any]] = [
    {
        "description": "Drijfmest van graasdieren op het eigen bedrijf geproduceerd",
        "fertilizer_type_codes": GRAZING_SLURRY_CODES,
        "on_farm_produced": True,
        "is_manure": True,
        "sub_rules": [
            {
                "description": "Op bedrijf met beweiding",
                "grazing_intention": True,
                "value": "0.45",
            },
            {
                "description": "Op bedrijf zonder beweiding",
                "grazing_intention": False,
                "value": "0.6",
            },
        ],
    },
    {
        "description": "Drijfmest van graasdieren aangevoerd",
        "fertilizer_type_codes": GRAZING_SLURRY_CODES,
        "on_farm_produced": False,
        "is_manure": True,
        "value": "0.6",
    },
    {
        "description": "Drijfmest van varkens",
        "fertilizer_type_codes": ["46", "50"],
        "is_manure": True,
        "sub_rules": [
            {
                "description": "Op klei en veen",
                "soil_type_codes": ["klei", "veen"],
                "value": "0.6",
            },
            {
                "description": "Op zand en löss",
                "soil_type_codes": ["zand_nwc", "zand_zuid", "loess"],
                "value": "0.8",
            },
        ],
    },
    {
        "description": "Drijfmest van overige diersoorten",
        "fertilizer_type_codes": ["30", "76", "81", "91", "92"],
        "is_manure": True,
        "value": "0.6",
    },
    {
        "description": "Dunne fractie na mestbewerking en gier",
        "fertilizer_type_codes": ["12", "17", "41", "42"],
        "is_manure": True,
        "value": "0.8",
    },
    {
        "description": "Vaste mest van graasdieren op het eigen bedrijf geproduceerd",
        "fertilizer_type_codes": GRAZING_SOLID_CODES,
        "on_farm_produced": True,
        "is_manure": True,
        "sub_rules": [
            {
                "description": "Op bouwland op klei en veen, van 1 september t/m 31 januari",
                "soil_type_codes": ["klei", "veen"],
                "is_arable_land": True,
                "application_period": SEPTEMBER_TO_JANUARY,
                "value": "0.3",
            },
            {
                "description": "Overige toepassingen op bedrijf met beweiding",
                "grazing_intention": True,
                "value": "0.45",
            },
            {
                "description": "Overige toepassingen op bedrijf zonder beweiding",
                "grazing_intention": False,
                "value": "0.6",
            },
        ],
    },
    {
        "description": "Vaste mest van graasdieren aangevoerd",
        "fertilizer_type_codes": GRAZING_SOLID_CODES,
        "on_farm_produced": False,
        "is_manure": True,
        "sub_rules": [
            {
                "description": "Op bouwland op klei en veen, van 1 september t/m 31 januari",
                "soil_type_codes": ["klei", "veen"],
                "is_arable_land": True,
                "application_period": SEPTEMBER_TO_JANUARY,
                "value": "0.3",
            },
            {
                "description": "Overige toepassingen",
                "value": "0.4",
            },
        ],
    },
    {
        "description": "Vaste mest van varkens, pluimvee en nertsen",
        "fertilizer_type_codes": PIG_POULTRY_MINK_SOLID_CODES,
        "is_manure": True,
        "value": "0.55",
    },
    {
        "description": "Vaste mest van overige diersoorten",
        "fertilizer_type_codes": OTHER_SOLID_CODES,
        "is_manure": True,
        "sub_rules": [
            {
                "description": "Op bouwland op klei en veen, van 1 september t/m 31 januari",
                "soil_type_codes": ["klei", "veen"],
                "is_arable_land": True,
                "application_period": SEPTEMBER_TO_JANUARY,
                "value": "0.3",
            },
            {
                "description": "Overige toepassingen",
                "value": "0.4",
            },
        ],
    },
    {
        "description": "Compost",
        "fertilizer_type_codes": ["111", "112"],
        "value": "0.1",
    },
    {
        "description": "Champost",
        "fertilizer_type_codes": ["110", "117"],
        "value": "0.25",
    },
    {
        "description": "Zuiveringsslib",
        "fertilizer_type_codes": ["113", "114"],
        "value": "0.4",
    },
    {
        "description": "Overige organische meststoffen",
        "fertilizer_type_codes": ["116"],
        "value": "0.5",
    },
    {
        "description": "Mineralenconcentraat",
        "fertilizer_type_codes": ["120"],
        "is_manure": True,
        "value": "1",
    },
    {
        "description": "Kunstmest",
        "fertilizer_type_codes": ["115"],
        "value": "1",
    },
]

ALL_SOIL_TYPES = ["klei", "veen", "zand_nwc", "zand_zuid", "loess"]

# Gebruiksnormen in kg per hectare.
NORMS: dict[str, list[dict[str, Any]]] = {
    "nitrogen": [
        {
            "description": "Grasland met beweiden",
            "is_arable_land": False,
            "grazing_intention": True,
            "sub_rules": [
                {"description": "Klei", "soil_type_codes": ["klei"], "value": 345},
                {"description": "Veen", "soil_type_codes": ["veen"], "value": 265},
                {
                    "description": "Zand en löss",
                    "soil_type_codes": ["zand_nwc", "zand_zuid", "loess"],
                    "value": 250,
                },
            ],
        },
        {
            "description": "Grasland met volledig maaien",
            "is_arable_land": False,
            "grazing_intention": False,
            "sub_rules": [
                {"description": "Klei", "soil_type_codes": ["klei"], "value": 385},
                {"description": "Veen", "soil_type_codes": ["veen"], "value": 300},
                {
                    "description": "Zand en löss",
                    "soil_type_codes": ["zand_nwc", "zand_zuid", "loess"],
                    "value": 320,
                },
            ],
        },
        {
            "description": "Bouwland, mais",
            "is_arable_land": True,
            "sub_rules": [
                {"description": "Klei", "soil_type_codes": ["klei"], "value": 185},
                {"description": "Veen", "soil_type_codes": ["veen"], "value": 150},
                {"description": "Zand noordwest-centraal", "soil_type_codes": ["zand_nwc"], "value": 140},
                {"description": "Zand zuid en löss", "soil_type_codes": ["zand_zuid", "loess"], "value": 112},
            ],
        },
    ],
    "phosphate": [
        {"description": "Grasland, fosfaattoestand neutraal", "is_arable_land": False, "value": 95},
        {"description": "Bouwland, fosfaattoestand neutraal", "is_arable_land": True, "value": 70},
    ],
    "manure": [
        {"description": "Derogatie", "derogation": True, "value": 200},
        {"description": "Standaard - geen derogatie", "derogation": False, "value": 170},
    ],
}

# Stimulering organische stofrijke meststoffen: P2O5 from these codes counts
# at a reduced share once at least 20 kg/ha of it is applied on a field.
PHOSPHATE_DISCOUNT: dict[str, Any] = {
    "threshold_per_ha": 20,
    "tiers": [
        {
            "description": "Compost, zeer schone compost",
            "fertilizer_type_codes": ["111", "112"],
            "factor": "0.25",
        },
        {
            "description": "Champost, vaste mest van rundvee, geiten, paarden en schapen",
            "fertilizer_type_codes": ["110", "10", "61", "25", "56"],
            "factor": "0.75",
        },
    ],
}

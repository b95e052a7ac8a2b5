"""Bundled regional reference data.

Baselines are average operating costs in EUR/m²/month taken from the local
Betriebskostenspiegel and state statistics (2025 editions).
"""

from nebenkosten.analysis.schema import CostCategory, DataQuality, RegionalProfile


def _baselines(
    heating: float, water: float, waste: float, maintenance: float
) -> dict[CostCategory, float]:
    return {
        CostCategory.HEATING: heating,
        CostCategory.WATER: water,
        CostCategory.WASTE: waste,
        CostCategory.MAINTENANCE: maintenance,
    }


def _known(
    postal_code: str,
    city: str,
    state: str,
    region: str,
    provider: str,
    population: int,
    baselines: dict[CostCategory, float],
    source: str,
) -> RegionalProfile:
    return RegionalProfile(
        postal_code=postal_code,
        city=city,
        state=state,
        region=region,
        utility_provider=provider,
        population=population,
        baseline_costs=baselines,
        data_quality=DataQuality.OFFICIAL_LOCAL,
        data_source=source,
    )


KNOWN_REGIONS: dict[str, RegionalProfile] = {
    profile.postal_code: profile
    for profile in (
        _known(
            "10115", "Berlin", "Berlin", "Berlin-Mitte", "Vattenfall", 3_669_491,
            _baselines(1.52, 0.65, 0.35, 1.20),
            "SMARD API + Berliner Betriebskostenspiegel 2025",
        ),
        _known(
            "10117", "Berlin", "Berlin", "Berlin-Mitte", "Vattenfall", 3_669_491,
            _baselines(1.48, 0.65, 0.35, 1.25),
            "SMARD API + Berliner Betriebskostenspiegel 2025",
        ),
        _known(
            "80331", "München", "Bayern", "München-Zentrum", "SWM", 1_488_202,
            _baselines(1.78, 0.72, 0.41, 1.45),
            "SWM API + Bayern Energiebericht 2025",
        ),
        _known(
            "80333", "München", "Bayern", "München-Zentrum", "SWM", 1_488_202,
            _baselines(1.75, 0.72, 0.41, 1.42),
            "SWM API + Bayern Energiebericht 2025",
        ),
        _known(
            "20095", "Hamburg", "Hamburg", "Hamburg-Zentrum", "Hamburg Energie", 1_945_532,
            _baselines(1.45, 0.68, 0.38, 1.15),
            "Hamburg Energie API + HH Betriebskostenspiegel 2025",
        ),
        _known(
            "60311", "Frankfurt am Main", "Hessen", "Frankfurt-Zentrum", "Mainova", 753_056,
            _baselines(1.85, 0.78, 0.45, 1.55),
            "Mainova API + Hessen Energiestatistik 2025",
        ),
        _known(
            "50667", "Köln", "Nordrhein-Westfalen", "Köln-Zentrum", "RheinEnergie", 1_073_096,
            _baselines(1.62, 0.69, 0.42, 1.28),
            "RheinEnergie API + NRW Betriebskostenspiegel 2025",
        ),
        _known(
            "70173", "Stuttgart", "Baden-Württemberg", "Stuttgart-Zentrum", "EnBW", 626_275,
            _baselines(1.68, 0.74, 0.39, 1.38),
            "EnBW API + BW Energiebericht 2025",
        ),
        _known(
            "40213", "Düsseldorf", "Nordrhein-Westfalen", "Düsseldorf-Zentrum",
            "Stadtwerke Düsseldorf", 619_294,
            _baselines(1.58, 0.71, 0.43, 1.32),
            "Stadtwerke Düsseldorf API + NRW Statistik 2025",
        ),
        _known(
            "04109", "Leipzig", "Sachsen", "Leipzig-Zentrum", "Stadtwerke Leipzig", 597_493,
            _baselines(1.35, 0.58, 0.32, 1.05),
            "Stadtwerke Leipzig API + Sachsen Energiestatistik 2025",
        ),
        _known(
            "44135", "Dortmund", "Nordrhein-Westfalen", "Dortmund-Zentrum", "DEW21", 588_250,
            _baselines(1.42, 0.63, 0.37, 1.18),
            "DEW21 API + NRW Betriebskostenspiegel 2025",
        ),
        _known(
            "45127", "Essen", "Nordrhein-Westfalen", "Essen-Zentrum", "Stadtwerke Essen", 579_432,
            _baselines(1.38, 0.61, 0.36, 1.12),
            "Stadtwerke Essen API + NRW Statistik 2025",
        ),
    )
}

STATE_BASELINES: dict[str, dict[CostCategory, float]] = {
    "Baden-Württemberg": _baselines(1.70, 0.74, 0.39, 1.38),
    "Bayern": _baselines(1.75, 0.72, 0.41, 1.42),
    "Berlin": _baselines(1.50, 0.65, 0.35, 1.20),
    "Brandenburg": _baselines(1.28, 0.54, 0.29, 0.98),
    "Bremen": _baselines(1.46, 0.65, 0.37, 1.17),
    "Hamburg": _baselines(1.45, 0.68, 0.38, 1.15),
    "Hessen": _baselines(1.82, 0.76, 0.44, 1.52),
    "Mecklenburg-Vorpommern": _baselines(1.20, 0.48, 0.26, 0.90),
    "Niedersachsen": _baselines(1.44, 0.64, 0.36, 1.16),
    "Nordrhein-Westfalen": _baselines(1.55, 0.67, 0.40, 1.25),
    "Rheinland-Pfalz": _baselines(1.58, 0.69, 0.39, 1.28),
    "Saarland": _baselines(1.65, 0.71, 0.40, 1.35),
    "Sachsen": _baselines(1.32, 0.56, 0.31, 1.02),
    "Sachsen-Anhalt": _baselines(1.22, 0.50, 0.27, 0.92),
    "Schleswig-Holstein": _baselines(1.48, 0.66, 0.37, 1.18),
    "Thüringen": _baselines(1.25, 0.52, 0.28, 0.95),
}

NATIONAL_BASELINES: dict[CostCategory, float] = _baselines(1.50, 0.65, 0.35, 1.20)

# Dominant utility per state for profiles built from the postal code API.
# States not listed get the local municipal utility ("Stadtwerke <city>").
STATE_PROVIDERS: dict[str, str] = {
    "Baden-Württemberg": "EnBW",
    "Bayern": "E.ON",
    "Berlin": "Vattenfall",
    "Hamburg": "Hamburg Energie",
    "Nordrhein-Westfalen": "RheinEnergie",
}


def provider_for(state: str, city: str) -> str:
    return STATE_PROVIDERS.get(state, f"Stadtwerke {city}")

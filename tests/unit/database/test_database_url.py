from pathlib import Path

import yaml

from database.database import make_engine

REPO_ROOT = Path(__file__).resolve().parents[3]


def test_sample_config_names_psycopg2_driver():
    with open(REPO_ROOT / "config.yaml") as f:
        url = yaml.safe_load(f)["database_url"]

    assert url.startswith("postgresql+psycopg2://")
    assert make_engine(url).dialect.driver == "psycopg2"

"""Manifest structure and descriptive text of a data package"""
import os
from pathlib import Path

import yaml

from fg_package.constants import (
    SCHEMA_VERSION,
    DEFAULT_ORGANISM,
    DEFAULT_IMAGE,
    CELL_METADATA,
    GENE_METADATA,
    EXPRESSION_DATA,
    MANIFEST,
)


def make_raw_manifest() -> dict:
    """Create the manifest structure of a data package.

    Descriptive fields are empty and file names are the package defaults.
    The caller fills in the values before writing it.

    Returns:
        dict: Manifest with all required keys
    """
    return {
        "schema_version": SCHEMA_VERSION,
        "data": {
            "cell_metadata": {
                "file": CELL_METADATA,
                "organism": DEFAULT_ORGANISM,
                "batch_column": None,
            },
            "gene_metadata": {"file": GENE_METADATA},
            "expression_data": {"file": EXPRESSION_DATA},
            "supplemental": {
                "unconsidered_genes": {
                    "expression_data": {"file": None},
                    "gene_metadata": {"file": None},
                }
            },
        },
        "metadata": {
            "title": "",
            "technology": "",
            "version": 1,
            "contact": "",
            "description": "",
            "short_description": "",
            "processing": {"notes": "", "tools": ""},
            "image": DEFAULT_IMAGE,
        },
    }


def make_md_link(url: str, title: str) -> str:
    """Make a Markdown link, e.g. [FASTGenomics](https://fastgenomics.org "FASTGenomics")"""
    return f'[{title}]({url} "{title}")'


def make_dataset_description(
    sample_size: int,
    technology: str,
    tissue: str,
    paper_id: str,
    paper_url: str,
    dataset_id: str,
    dataset_url: str,
) -> str:
    return (
        f"This dataset comprises transcriptomes from {sample_size} single cells "
        f"generated with {technology} from {tissue}. Results have been published "
        f"in {make_md_link(paper_url, paper_id)}; the data has been retrieved from "
        f"{make_md_link(dataset_url, dataset_id)}."
    )


def write_manifest(manifest: dict, outfolder: str, filename: str = MANIFEST) -> Path:
    os.makedirs(outfolder, exist_ok=True)
    out_path = Path(outfolder) / filename
    with open(out_path, "w", encoding="utf-8") as manifest_file:
        yaml.safe_dump(manifest, manifest_file, sort_keys=False, allow_unicode=True)
    return out_path

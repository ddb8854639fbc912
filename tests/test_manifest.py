import yaml

from fg_package.manifest import (
    make_raw_manifest,
    make_md_link,
    make_dataset_description,
    write_manifest,
)


def test_make_raw_manifest():
    manifest = make_raw_manifest()
    assert list(manifest) == ["schema_version", "data", "metadata"]
    assert manifest["schema_version"] == 2.1
    assert manifest["data"]["cell_metadata"] == {
        "file": "cell_metadata.tsv",
        "organism": 10090,
        "batch_column": None,
    }
    assert manifest["data"]["gene_metadata"]["file"] == "gene_metadata.tsv"
    assert manifest["data"]["expression_data"]["file"] == "expression_data.tsv"
    unconsidered = manifest["data"]["supplemental"]["unconsidered_genes"]
    assert unconsidered["expression_data"]["file"] is None
    assert unconsidered["gene_metadata"]["file"] is None
    assert manifest["metadata"]["version"] == 1
    assert manifest["metadata"]["image"] == "image.png"
    assert manifest["metadata"]["processing"] == {"notes": "", "tools": ""}
    for key in ("title", "technology", "contact", "description", "short_description"):
        assert manifest["metadata"][key] == ""


def test_raw_manifests_are_independent():
    first = make_raw_manifest()
    first["metadata"]["processing"]["notes"] = "changed"
    assert make_raw_manifest()["metadata"]["processing"]["notes"] == ""


def test_make_md_link():
    assert (
        make_md_link(url="https://fastgenomics.org", title="FASTGenomics website")
        == '[FASTGenomics website](https://fastgenomics.org "FASTGenomics website")'
    )


def test_make_dataset_description():
    description = make_dataset_description(
        sample_size=3005,
        technology="Fluidigm C1",
        tissue="mouse cortex",
        paper_id="Zeisel et al.",
        paper_url="https://doi.org/10.1126/science.aaa1934",
        dataset_id="GSE60361",
        dataset_url="https://www.ncbi.nlm.nih.gov/geo/query/acc.cgi?acc=GSE60361",
    )
    assert description.startswith(
        "This dataset comprises transcriptomes from 3005 single cells generated "
        "with Fluidigm C1 from mouse cortex."
    )
    assert '[GSE60361](https://www.ncbi.nlm.nih.gov/geo/query/acc.cgi?acc=GSE60361 "GSE60361")' in description
    assert description.endswith(".")


def test_write_manifest(tmp_path):
    manifest = make_raw_manifest()
    manifest["metadata"]["title"] = "Mouse cortex"
    out_path = write_manifest(manifest, str(tmp_path))
    with open(out_path, encoding="utf-8") as manifest_file:
        assert yaml.safe_load(manifest_file) == manifest
    assert out_path.read_text(encoding="utf-8").startswith("schema_version: 2.1\n")

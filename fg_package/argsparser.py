"""Functions for argument parsing
"""

from argparse import ArgumentParser, ArgumentTypeError, RawTextHelpFormatter
from importlib.metadata import PackageNotFoundError, version

from fg_package.constants import DEFAULT_ORGANISM, KEYTYPES


def get_package_version() -> str:
    """Return package version

    Returns:
        str: Package version as string
    """
    try:
        return version("fg-package")
    except PackageNotFoundError:
        return "unknown"


def row_selector(value: str) -> list:
    """Parse a comma-separated list of row positions and/or row labels"""
    rows = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            raise ArgumentTypeError(f"Empty row in {value}")
        rows.append(int(item) if item.isdigit() else item)
    return rows


def get_args() -> ArgumentParser:
    """
    Get args.
    """

    parser = ArgumentParser(
        prog="fg-package",
        formatter_class=RawTextHelpFormatter,
        description=(
            "This package turns a single-cell count matrix into a data package "
            "with Entrez-mapped sparse expression data, cell and gene metadata "
            "and a manifest. Version {}".format(get_package_version())
        ),
    )

    # REQUIRED INPUTS group.
    inputs = parser.add_argument_group("Inputs", description="Required input files.")
    inputs.add_argument(
        "-m",
        "--matrix",
        dest="matrix",
        required=True,
        help=(
            "The path of the dense count matrix. Genes as rows, cells as columns.\n\n"
            "Example of a count matrix structure:\n\n"
            "\tgene\tcell_1\tcell_2\n"
            "\tActb\t12\t0\n"
            "\tGapdh\t3\t7"
        ),
    )
    inputs.add_argument(
        "--path",
        dest="path",
        required=False,
        default=None,
        help=("Directory holding the count matrix."),
    )
    inputs.add_argument(
        "--sep",
        dest="sep",
        required=False,
        default="\t",
        help=("Column separator of the count matrix. Defaults to tab."),
    )
    inputs.add_argument(
        "--no-header",
        dest="header",
        action="store_false",
        default=True,
        help=("The count matrix has no header line with cell names."),
    )

    # ANNOTATION group.
    annotation = parser.add_argument_group(
        "Annotation",
        description=(
            "Source of the gene annotation used to map gene names to Entrez IDs.\n"
            "Without --gene-info, the NCBI gene_info file of --organism is downloaded."
        ),
    )
    annotation.add_argument(
        "--gene-info",
        dest="gene_info",
        required=False,
        default=None,
        help=("Path to a local NCBI gene_info file, gzipped or not."),
    )
    annotation.add_argument(
        "--organism",
        dest="organism",
        required=False,
        type=int,
        default=DEFAULT_ORGANISM,
        help=("NCBI taxonomy ID of the organism. Defaults to mouse (10090)."),
    )
    annotation.add_argument(
        "--keytype",
        dest="keytype",
        required=False,
        choices=KEYTYPES,
        default="SYMBOL",
        help=("ID type of the count matrix row names. Defaults to SYMBOL."),
    )

    # Cell metadata group. Either from matrix rows or from the column names.
    cell_metadata = parser.add_mutually_exclusive_group(required=False)
    cell_metadata.add_argument(
        "--meta-rows",
        dest="meta_rows",
        type=row_selector,
        default=None,
        help=(
            "Comma-separated row numbers (0-based) or row names holding\n"
            "cell metadata. These rows are removed from the counts."
        ),
    )
    cell_metadata.add_argument(
        "--meta-sep",
        dest="meta_sep",
        type=str,
        default=None,
        help=("Extract cell metadata from the column names split on this separator."),
    )

    # MANIFEST group.
    manifest = parser.add_argument_group(
        "Manifest", description=("Descriptive fields of the manifest.")
    )
    manifest.add_argument("--title", dest="title", default="", help="Dataset title.")
    manifest.add_argument(
        "--technology", dest="technology", default="", help="Sequencing technology."
    )
    manifest.add_argument(
        "--contact", dest="contact", default="", help="Contact of the dataset."
    )
    manifest.add_argument(
        "--batch-column",
        dest="batch_column",
        default=None,
        help="Cell metadata column holding the batch.",
    )

    # Global group
    parser.add_argument(
        "-o",
        "--output",
        required=False,
        type=str,
        default="results",
        dest="outfolder",
        help=("Results will be written to this folder"),
    )
    parser.add_argument(
        "--zip",
        required=False,
        type=str,
        default=None,
        dest="archive",
        help=("Bundle the package into a zip archive with this name."),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fg-package v{get_package_version()}",
        help="Print version number.",
    )
    return parser

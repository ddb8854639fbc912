#!/usr/bin/env python3
"""
Build a data package from a single-cell count matrix
"""
import sys
import time

from fg_package import (
    annotation,
    argsparser,
    io,
    manifest,
    mapping,
    preprocessing,
    constants,
)
from fg_package.count_matrix import drop_rows
from fg_package.exceptions import FormatError


def build_package(args) -> dict:
    """Run the whole pipeline and write the package to args.outfolder

    Args:
        args (Namespace): Parsed arguments

    Returns:
        dict: The manifest written with the package
    """
    print("Reading count matrix")
    count_matrix = io.read_count_matrix(
        file=args.matrix, path=args.path, header=args.header, sep=args.sep
    )
    print(f"Loaded {count_matrix.n_genes} genes and {count_matrix.n_cells} cells")

    # Metadata has to be extracted before cellIds replace the column names
    extracted_metadata = None
    if args.meta_rows is not None:
        extracted_metadata = preprocessing.get_meta_from_matrix(
            count_matrix, lines=args.meta_rows
        )
        count_matrix = drop_rows(count_matrix, args.meta_rows)
    elif args.meta_sep is not None:
        extracted_metadata = preprocessing.get_meta_from_colnames(
            count_matrix, sep=args.meta_sep
        ).drop(constants.CELL_NAME_COLUMN)

    count_matrix, cell_metadata = preprocessing.assign_cell_ids(count_matrix)
    if extracted_metadata is not None:
        cell_metadata = cell_metadata.hstack(
            extracted_metadata.drop(constants.CELL_ID_COLUMN)
        )

    if args.gene_info is not None:
        gene_info_path = args.gene_info
    else:
        gene_info_path = annotation.fetch_gene_info(args.organism)
    lookup = annotation.GeneInfoLookup.from_gene_info(
        annotation.read_gene_info(gene_info_path), keytype=args.keytype
    )
    partition = mapping.map_gene_ids(count_matrix, lookup)
    resolved_metadata, excluded_metadata = mapping.create_gene_metadata(partition)

    print("Writing package")
    package_manifest = manifest.make_raw_manifest()
    package_files = [
        io.write_expression_data(partition.resolved, args.outfolder),
        io.write_gene_metadata(resolved_metadata, args.outfolder),
        io.write_cell_metadata(cell_metadata, args.outfolder),
    ]
    if partition.excluded.n_genes > 0:
        package_files.append(
            io.write_expression_data(
                partition.excluded,
                args.outfolder,
                filename=constants.UNCONSIDERED_EXPRESSION_DATA,
                gene_column=constants.GENE_NAME_HEADER,
            )
        )
        package_files.append(
            io.write_gene_metadata(
                excluded_metadata,
                args.outfolder,
                filename=constants.UNCONSIDERED_GENE_METADATA,
                id_header=constants.GENE_NAME_HEADER,
            )
        )
        unconsidered = package_manifest["data"]["supplemental"]["unconsidered_genes"]
        unconsidered["expression_data"]["file"] = constants.UNCONSIDERED_EXPRESSION_DATA
        unconsidered["gene_metadata"]["file"] = constants.UNCONSIDERED_GENE_METADATA

    package_manifest["data"]["cell_metadata"]["organism"] = args.organism
    package_manifest["data"]["cell_metadata"]["batch_column"] = args.batch_column
    package_manifest["metadata"]["title"] = args.title
    package_manifest["metadata"]["technology"] = args.technology
    package_manifest["metadata"]["contact"] = args.contact
    package_manifest["metadata"]["processing"]["notes"] = (
        f"{partition.resolved.n_genes} of {count_matrix.n_genes} genes mapped "
        f"to unique Entrez IDs ({args.keytype})."
    )
    package_manifest["metadata"]["processing"][
        "tools"
    ] = f"fg-package v{argsparser.get_package_version()}"
    package_files.append(manifest.write_manifest(package_manifest, args.outfolder))

    if args.archive:
        archive_path = io.bundle_package(
            args.outfolder, args.archive, package_files
        )
        print(f"Package bundled in {archive_path}")
    return package_manifest


def main(arguments=None):
    """Main"""
    start_time = time.time()
    parser = argsparser.get_args()
    if arguments is None and not sys.argv[1:]:
        parser.print_help(file=sys.stderr)
        sys.exit(2)

    # Parse arguments.
    args = parser.parse_args(arguments)
    try:
        build_package(args)
    except (FormatError, FileNotFoundError, IndexError, LookupError) as err:
        raise SystemExit(f"[ERROR] {err}\nExiting the application.") from err
    print(f"Package written to {args.outfolder} in {time.time() - start_time:.2f} seconds")


if __name__ == "__main__":
    main()

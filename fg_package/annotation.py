"""Gene identifier lookups backed by NCBI gene_info tables."""
import os

import pooch
import polars as pl

from fg_package.io import check_file
from fg_package.exceptions import FormatError
from fg_package.constants import (
    NCBI_GENE_INFO_URL,
    GENE_INFO_FILES,
    GENE_INFO_ID_COLUMN,
    GENE_INFO_SYMBOL_COLUMN,
    GENE_INFO_SYNONYMS_COLUMN,
    GENE_INFO_XREFS_COLUMN,
    GENE_INFO_NULL,
    KEYTYPES,
)

KEY_COLUMN = "key"


class GeneInfoLookup:
    """Maps a gene label to the set of Entrez Gene IDs it can stand for.

    Instances are callables `label -> set[str]`, which is all the mapping
    step requires from an annotation source.
    """

    def __init__(self, keys_df: pl.DataFrame):
        grouped = keys_df.group_by(KEY_COLUMN).agg(
            pl.col(GENE_INFO_ID_COLUMN).unique()
        )
        self._mapping = {
            key: set(gene_ids) for key, gene_ids in grouped.iter_rows()
        }

    def __call__(self, label: str) -> set[str]:
        return set(self._mapping.get(label, ()))

    def __len__(self) -> int:
        return len(self._mapping)

    @classmethod
    def from_gene_info(cls, gene_info: pl.DataFrame, keytype: str = "SYMBOL"):
        """Build a lookup from a gene_info table.

        Args:
            gene_info (pl.DataFrame): gene_info table with GeneID, Symbol, Synonyms and dbXrefs
            keytype (str): SYMBOL, ALIAS or ENSEMBL. Defaults to "SYMBOL".

        Raises:
            ValueError: If the keytype isn't supported

        Returns:
            GeneInfoLookup: The lookup
        """
        if keytype not in KEYTYPES:
            raise ValueError(
                f"Keytype {keytype} is not supported. Use one of {','.join(KEYTYPES)}"
            )
        gene_info = gene_info.with_columns(pl.col(GENE_INFO_ID_COLUMN).cast(pl.String))
        symbols = gene_info.select(
            pl.col(GENE_INFO_SYMBOL_COLUMN).alias(KEY_COLUMN), GENE_INFO_ID_COLUMN
        )
        if keytype == "SYMBOL":
            keys_df = symbols
        elif keytype == "ALIAS":
            synonyms = (
                gene_info.select(
                    pl.col(GENE_INFO_SYNONYMS_COLUMN).str.split("|").alias(KEY_COLUMN),
                    GENE_INFO_ID_COLUMN,
                )
                .explode(KEY_COLUMN)
            )
            keys_df = pl.concat([symbols, synonyms])
        else:
            keys_df = (
                gene_info.select(
                    pl.col(GENE_INFO_XREFS_COLUMN).str.split("|").alias(KEY_COLUMN),
                    GENE_INFO_ID_COLUMN,
                )
                .explode(KEY_COLUMN)
                .filter(pl.col(KEY_COLUMN).str.starts_with("Ensembl:"))
                .with_columns(pl.col(KEY_COLUMN).str.strip_prefix("Ensembl:"))
            )
        keys_df = keys_df.filter(
            pl.col(KEY_COLUMN).is_not_null()
            & (pl.col(KEY_COLUMN) != GENE_INFO_NULL)
            & (pl.col(KEY_COLUMN) != "")
        )
        return cls(keys_df)


def read_gene_info(filename: str) -> pl.DataFrame:
    """Read an NCBI gene_info file, gzipped or not.

    Args:
        filename (str): Path to the gene_info file

    Returns:
        pl.DataFrame: The gene_info table
    """
    file_path = check_file(filename)
    gene_info = pl.read_csv(
        file_path,
        separator="\t",
        infer_schema_length=0,
        quote_char=None,
    )
    gene_info = gene_info.rename(
        {column: column.lstrip("#") for column in gene_info.columns}
    )
    missing = {
        GENE_INFO_ID_COLUMN,
        GENE_INFO_SYMBOL_COLUMN,
        GENE_INFO_SYNONYMS_COLUMN,
        GENE_INFO_XREFS_COLUMN,
    } - set(gene_info.columns)
    if missing:
        raise FormatError(
            f"The header of the gene_info file at {file_path} "
            f"is missing the following header(s) {' AND '.join(sorted(missing))}"
        )
    return gene_info


def fetch_gene_info(organism: int, cache_path: str | None = None) -> str:
    """Download the NCBI gene_info file of an organism to the local cache.

    Args:
        organism (int): NCBI taxonomy ID
        cache_path (str | None): Cache folder. Defaults to the pooch os cache.

    Raises:
        LookupError: If the organism isn't supported or the download fails

    Returns:
        str: Path to the downloaded file
    """
    if organism not in GENE_INFO_FILES:
        raise LookupError(
            f"No gene_info file is known for organism {organism}. "
            f"Known organisms: {', '.join(str(taxon) for taxon in GENE_INFO_FILES)}"
        )
    remote_file = GENE_INFO_FILES[organism]
    print(f"Loading remote file from: {NCBI_GENE_INFO_URL}{remote_file}")
    try:
        return pooch.retrieve(
            url=f"{NCBI_GENE_INFO_URL}{remote_file}",
            known_hash=None,
            fname=os.path.basename(remote_file),
            path=cache_path or pooch.os_cache("fg_package"),
        )
    except (OSError, ValueError) as err:
        raise LookupError(
            f"Could not retrieve the gene_info file for organism {organism}: {err}"
        ) from err

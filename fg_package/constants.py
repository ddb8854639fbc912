# Count matrix
DEFAULT_SEPARATOR = "\t"
DEFAULT_META_ROWS = range(5)
UNHEADED_PREFIX = "V"

# Cell metadata
CELL_ID_COLUMN = "cellId"
CELL_NAME_COLUMN = "cellName"
TOKEN_PREFIX = "V"

# Mapping log
ORIGINAL_ID_COLUMN = "originalID"
MAPPED_ID_COLUMN = "mappedID"
MAPPING_LOG_COLUMN = "mappingLog"
CANDIDATES_COLUMN = "candidates"
N_CANDIDATES_COLUMN = "n_candidates"
MAPPED_ID_SEPARATOR = " // "

# Dispositions
UNASSIGNED = "no canonical ID defined"
MULTI_MAPPED = "mapped to multiple canonical IDs"
COLLISION = "multiple original IDs mapped to same canonical ID"
RESOLVED = "successfully mapped to unique canonical ID"

# Package file format
CELL_ID_HEADER = "cellId*Integer"
GENE_ID_HEADER = "geneId*Integer"
GENE_NAME_HEADER = "gene*String"
EXPRESSION_HEADER = "expressionValue*Number"
EXPRESSION_DATA = "expression_data.tsv"
CELL_METADATA = "cell_metadata.tsv"
GENE_METADATA = "gene_metadata.tsv"
UNCONSIDERED_EXPRESSION_DATA = "unconsidered_genes_expression_data.tsv"
UNCONSIDERED_GENE_METADATA = "unconsidered_genes_metadata.tsv"
MANIFEST = "manifest.yml"
SCHEMA_VERSION = 2.1
DEFAULT_ORGANISM = 10090
DEFAULT_IMAGE = "image.png"

# Annotation
NCBI_GENE_INFO_URL = "https://ftp.ncbi.nlm.nih.gov/gene/DATA/GENE_INFO/"
GENE_INFO_FILES = {
    9606: "Mammalia/Homo_sapiens.gene_info.gz",
    10090: "Mammalia/Mus_musculus.gene_info.gz",
    10116: "Mammalia/Rattus_norvegicus.gene_info.gz",
}
GENE_INFO_ID_COLUMN = "GeneID"
GENE_INFO_SYMBOL_COLUMN = "Symbol"
GENE_INFO_SYNONYMS_COLUMN = "Synonyms"
GENE_INFO_XREFS_COLUMN = "dbXrefs"
GENE_INFO_NULL = "-"
KEYTYPES = ["SYMBOL", "ALIAS", "ENSEMBL"]

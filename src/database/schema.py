"""
Raw SQL statements for the biodata table
Kept in line with models.orm.Biodata so both storage variants share one table.
"""

CREATE_BIODATA_TABLE = """
    CREATE TABLE IF NOT EXISTS biodata (
        id SERIAL PRIMARY KEY,
        nama VARCHAR(100) NOT NULL,
        nim VARCHAR(20) NOT NULL,
        kelas VARCHAR(20) NOT NULL,
        CONSTRAINT uniq_nim UNIQUE (nim),
        CONSTRAINT ck_biodata_id_positive CHECK (id > 0),
        CONSTRAINT ck_biodata_nama_not_empty CHECK (btrim(nama) <> ''),
        CONSTRAINT ck_biodata_nim_length CHECK (char_length(nim) BETWEEN 5 AND 20),
        CONSTRAINT ck_biodata_kelas_not_empty CHECK (btrim(kelas) <> '')
    )
"""

BIODATA_COLUMNS = "id, nama, nim, kelas"

COUNT_BIODATA = "SELECT COUNT(*) FROM biodata"

SELECT_ALL_BIODATA = f"SELECT {BIODATA_COLUMNS} FROM biodata ORDER BY id ASC"

SELECT_BIODATA_BY_ID = f"SELECT {BIODATA_COLUMNS} FROM biodata WHERE id = $1"

INSERT_BIODATA = "INSERT INTO biodata (nama, nim, kelas) VALUES ($1, $2, $3) RETURNING id"

SEED_BIODATA = "INSERT INTO biodata (nama, nim, kelas) VALUES ($1, $2, $3)"

DELETE_BIODATA = "DELETE FROM biodata WHERE id = $1"

# Columns an UPDATE may touch; keys outside this set never reach the SQL text
UPDATABLE_COLUMNS = ("nama", "nim", "kelas")


def build_update_query(record_id: int, fields: dict) -> tuple[str, list]:
    """Build a partial UPDATE over the whitelisted columns present in fields"""
    assignments = []
    params = []
    for column in UPDATABLE_COLUMNS:
        if column in fields:
            params.append(fields[column])
            assignments.append(f"{column} = ${len(params)}")

    if not assignments:
        raise ValueError("No updatable columns supplied")

    params.append(record_id)
    query = (
        f"UPDATE biodata SET {', '.join(assignments)} "
        f"WHERE id = ${len(params)} RETURNING {BIODATA_COLUMNS}"
    )
    return query, params

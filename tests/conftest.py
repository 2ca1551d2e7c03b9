"""Pytest configuration and fixtures."""
import pytest

from parsers.sql_flow_parser import SQLFlowParser


SEEK_CLIENTE_SQL = """\
CREATE PROCEDURE [dbo].[WEB_Seek_Cliente]
    @id INT,
    @nombre VARCHAR(50) = NULL
AS
BEGIN
    SET NOCOUNT ON;
    -- look up the customer
    IF @id IS NULL
    BEGIN
        RETURN -1
    END
    ELSE
    BEGIN
        SELECT c.Nombre, o.Total
        FROM [dbo].[Cliente] c
        JOIN dbo.Orden o ON o.ClienteId = c.Id
        WHERE c.Id = @id
    END
    /* audit trail,
       one row per lookup */
    INSERT INTO [dbo].[Auditoria] (ClienteId) VALUES (@id)
    UPDATE dbo.Cliente SET UltimaConsulta = GETDATE() WHERE Id = @id
    DELETE FROM dbo.Temp WHERE ClienteId = @id
END
"""


@pytest.fixture
def flow_parser():
    return SQLFlowParser()


@pytest.fixture
def seek_cliente_sql():
    """Procedure touching every step type (params, if, return, else, select, insert, update, delete)."""
    return SEEK_CLIENTE_SQL


@pytest.fixture
def seek_cliente_steps(flow_parser, seek_cliente_sql):
    return flow_parser.parse(seek_cliente_sql)


@pytest.fixture
def sql_dir(tmp_path, seek_cliente_sql):
    """Directory with a nested procedure file, a header-less snippet and a non-SQL file."""
    procs = tmp_path / "procs"
    (procs / "web").mkdir(parents=True)
    (procs / "web" / "seek_cliente.sql").write_text(seek_cliente_sql, encoding="utf-8")
    (procs / "snippet.sql").write_text("SELECT 1 FROM Dual\n", encoding="utf-8")
    (procs / "notes.txt").write_text("not sql", encoding="utf-8")
    return procs

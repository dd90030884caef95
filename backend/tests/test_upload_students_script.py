from sqlalchemy import func
from sqlmodel import Session, select

from enrollment_app import models
from enrollment_app.database import create_db_and_tables, make_engine
from scripts import upload_students

CSV = (
    'FirstName,LastName,EnrollmentDate\n'
    'Carson,Alexander,2019-09-01\n'
    'Meredith,Alonso,2017-09-01\n'
    'Arturo,Anand,2018-09-01\n'
    'Gytis,Barzdukas,2017-09-01\n'
)


def _target(tmp_path):
    url = f"sqlite:///{tmp_path / 'target.db'}"
    engine = make_engine(url)
    create_db_and_tables(engine)
    return url, engine


def _rows(engine) -> int:
    with Session(engine) as s:
        return s.exec(select(func.count()).select_from(models.Student)).one()


def test_uploads_every_row_in_one_insert(tmp_path, capsys):
    url, engine = _target(tmp_path)
    csv_path = tmp_path / 'students.csv'
    csv_path.write_text(CSV, encoding='utf-8')
    assert upload_students.main([str(csv_path), '--url', url]) == upload_students.EXIT_OK
    assert 'Inserted 4 rows' in capsys.readouterr().out
    assert _rows(engine) == 4
    engine.dispose()


def test_header_only_file_inserts_nothing(tmp_path, capsys):
    url, engine = _target(tmp_path)
    csv_path = tmp_path / 'students.csv'
    csv_path.write_text('FirstName,LastName,EnrollmentDate\n', encoding='utf-8')
    assert upload_students.main([str(csv_path), '--url', url]) == upload_students.EXIT_OK
    assert 'Nothing to insert' in capsys.readouterr().out
    assert _rows(engine) == 0
    engine.dispose()


def test_dry_run_prints_statement_without_inserting(tmp_path, capsys):
    url, engine = _target(tmp_path)
    csv_path = tmp_path / 'students.csv'
    csv_path.write_text(CSV, encoding='utf-8')
    assert upload_students.main([str(csv_path), '--url', url, '--dry-run']) == upload_students.EXIT_OK
    out = capsys.readouterr().out
    assert '4 rows ready' in out
    assert "INSERT INTO student (first_name, last_name, enrollment_date) VALUES ('Carson'" in out
    assert _rows(engine) == 0
    engine.dispose()


def test_missing_file(tmp_path):
    assert upload_students.main([str(tmp_path / 'nope.csv'), '--url', 'sqlite://']) == upload_students.EXIT_INPUT_ERROR


def test_unreachable_database(tmp_path, capsys):
    csv_path = tmp_path / 'students.csv'
    csv_path.write_text(CSV, encoding='utf-8')
    url = f"sqlite:///{tmp_path / 'no_such_dir' / 'x.db'}"
    assert upload_students.main([str(csv_path), '--url', url]) == upload_students.EXIT_STORE_ERROR
    assert 'Database error' in capsys.readouterr().out


def test_conflicting_connection_settings_fail_in_strict_mode(tmp_path, capsys):
    csv_path = tmp_path / 'students.csv'
    csv_path.write_text(CSV, encoding='utf-8')
    args = [str(csv_path), '--url', f"sqlite:///{tmp_path / 'a.db'}", '--host', 'sql.example.net', '--database', 'school', '--strict']
    assert upload_students.main(args) == upload_students.EXIT_CONFIG_ERROR
    assert 'disagree' in capsys.readouterr().out

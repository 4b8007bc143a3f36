import json
from unittest.mock import patch

from typer.testing import CliRunner

from library_catalog.main import LibraryManager, app, run_script

runner = CliRunner()

SESSION = """\
# one catalog session
quijote = add "Don Quijote" "Miguel de Cervantes" Novela 1605
odisea = add "La Odisea" Homero
ana = register Ana ana@ejemplo.com
prestamo = lend $quijote $ana 7
loans $ana
return $prestamo
return $prestamo
stats
"""


def test_run_keeps_state_across_commands_in_one_session():
    result = runner.invoke(app, ["run", "-"], input=SESSION)

    assert result.exit_code == 1
    assert "Don Quijote by Miguel de Cervantes [Novela, 1605] (available)" in result.stdout
    assert "La Odisea by Homero [No especificado, -] (available)" in result.stdout
    assert "Ana <ana@ejemplo.com>" in result.stdout
    assert "(BORROWED)" in result.stdout
    assert "(RETURNED)" in result.stdout
    assert "Error (line 8): Book already returned for loan" in result.stdout
    assert "Total Books: 2" in result.stdout
    assert "Available Books: 2" in result.stdout
    assert "1 command(s) failed." in result.stdout


def test_run_script_file_with_json_output(tmp_path):
    script = tmp_path / "session.txt"
    script.write_text(
        'add "Cien años de soledad" "Gabriel García Márquez"\n'
        "add Rayuela \"Julio Cortázar\"\n"
        "search GARCÍA author\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["--output", "json", "run", str(script)])

    assert result.exit_code == 0
    lines = [json.loads(line) for line in result.stdout.splitlines()]
    assert lines[0][0]["title"] == "Cien años de soledad"
    assert [b["title"] for b in lines[2]] == ["Cien años de soledad"]


def test_run_reports_bad_lines_and_continues(lib):
    lines = [
        "publish Rayuela",
        "lend $nobody $nobody",
        "register Ana",
        'add "unterminated',
        "x = list",
        "lend missing nobody 0",
        "lend missing nobody",
        "add Rayuela Cortázar",
    ]

    with patch("builtins.print") as mock_print:
        failed = run_script(lines, lib)

    printed = [call.args[0] for call in mock_print.call_args_list]
    assert failed == 7
    assert printed[0] == "Error (line 1): Unknown command: publish"
    assert printed[1] == "Error (line 2): Unknown variable: $nobody"
    assert printed[2] == "Error (line 3): register takes 2 to 2 arguments, got 1."
    assert printed[3].startswith("Error (line 4): Cannot parse line")
    assert printed[4] == "Error (line 5): list does not create a record to bind to $x."
    assert printed[5] == "Error (line 6): Loan days must be a positive integer."
    assert printed[6] == "Error (line 7): Book does not exist: missing"
    assert [b.title for b in lib.list_books()] == ["Rayuela"]


def test_run_lend_uses_configured_default_days(lib):
    book = lib.add_book("Pedro Páramo", "Juan Rulfo")
    user = lib.register_user("Luis", "luis@ejemplo.com")

    assert run_script([f"lend {book.id} {user.id}"], lib) == 0

    loan = lib.loans_for_user(user.id)[0]
    assert (loan.due_date - loan.loan_date).days == 14


def test_single_shot_commands_are_not_offered():
    for command in (["add", "Rayuela", "Cortázar"], ["lend", "b", "u"], ["return", "l"], ["list"]):
        result = runner.invoke(app, command)
        assert result.exit_code == 2


def test_unknown_output_mode_is_rejected():
    result = runner.invoke(app, ["--output", "xml", "run", "-"], input="list\n")
    assert result.exit_code == 2
    assert LibraryManager._instance is None


@patch("library_catalog.main.Prompt.ask")
def test_menu_exits_on_zero(mock_ask):
    mock_ask.return_value = "0"
    result = runner.invoke(app, ["menu"])
    assert result.exit_code == 0
    assert "Goodbye!" in result.stdout


@patch("library_catalog.main.IntPrompt.ask")
@patch("library_catalog.main.Prompt.ask")
def test_menu_adds_book_and_reports_errors(mock_ask, mock_int_ask):
    mock_ask.side_effect = [
        "2", "Rayuela", "Julio Cortázar", "Novela",
        "6", "missing",
        "0",
    ]
    mock_int_ask.return_value = 1963

    result = runner.invoke(app, ["menu"])

    assert result.exit_code == 0
    books = LibraryManager.get_instance().list_books()
    assert [b.title for b in books] == ["Rayuela"]
    assert books[0].publication_year == 1963
    assert "Loan does not exist: missing" in result.stdout


@patch("library_catalog.main.IntPrompt.ask")
@patch("library_catalog.main.Prompt.ask")
def test_menu_lend_and_return_share_the_session(mock_ask, mock_int_ask):
    lib = LibraryManager.get_instance()
    book = lib.add_book("Ficciones", "Jorge Luis Borges")
    user = lib.register_user("Marta", "marta@ejemplo.com")
    mock_int_ask.return_value = 7

    mock_ask.side_effect = ["5", book.id, user.id, "0"]
    runner.invoke(app, ["menu"])
    loan = lib.loans_for_user(user.id)[0]
    assert lib.get_book(book.id).available is False

    mock_ask.side_effect = ["6", loan.id, "0"]
    result = runner.invoke(app, ["menu"])

    assert result.exit_code == 0
    assert lib.get_loan(loan.id).returned is True
    assert lib.get_book(book.id).available is True

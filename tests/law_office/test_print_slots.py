import pytest

from law_office.print_slots import main


def test_main_prints_weekend_slots(capsys: pytest.CaptureFixture[str]) -> None:
    main(['2024-06-15'])

    lines = capsys.readouterr().out.splitlines()

    assert lines[0] == '2024-06-15 (weekend)'
    assert lines[1:] == ['09:00', '09:30', '10:00', '10:30', '11:00', '11:30', '12:00']


def test_main_prints_weekday_slots(capsys: pytest.CaptureFixture[str]) -> None:
    main(['2024-06-12'])

    lines = capsys.readouterr().out.splitlines()

    assert lines[0] == '2024-06-12 (weekday)'
    assert len(lines[1:]) == 17


def test_main_exits_with_error_for_invalid_date(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exit_info:
        main(['june 15th'])

    assert exit_info.value.code == 1
    assert 'Invalid date' in capsys.readouterr().err


def test_main_requires_exactly_one_argument() -> None:
    with pytest.raises(SystemExit) as exit_info:
        main([])

    assert exit_info.value.code == 2

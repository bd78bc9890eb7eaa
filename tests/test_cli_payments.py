"""Tests for payment, fee and shipping commands."""

import json

from shopledger.cli.main import cli


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_pay_several_invoices(cli_runner, temp_db, posting_service, sample_supplier):
    first, second = sample_supplier["invoices"]
    result = _invoke(
        cli_runner, temp_db,
        "payment", "pay", "--supplier", str(sample_supplier["id"]),
        "--invoice", f"{first}=200", "--invoice", f"{second}=100",
        "--account", "1000", "--date", "2025-02-01",
    )

    assert result.exit_code == 0
    assert f"Invoice {first}: posted PAY-2025-0001" in result.output
    assert f"Invoice {second}: posted PAY-2025-0002" in result.output

    listing = _invoke(
        cli_runner, temp_db, "invoice", "list", "--supplier", str(sample_supplier["id"]), "--pending"
    )
    assert "PI-001" not in listing.output
    assert "PI-002" in listing.output


def test_pay_with_advance_splits_proportionally(cli_runner, temp_db, posting_service):
    _invoke(cli_runner, temp_db, "supplier", "create", "Prepaid Co", "--opening-balance", "-600")
    _invoke(cli_runner, temp_db, "invoice", "create", "PI-100", "200", "--supplier", "1", "--date", "2025-01-01")
    _invoke(cli_runner, temp_db, "invoice", "create", "PI-101", "300", "--supplier", "1", "--date", "2025-01-02")

    result = _invoke(
        cli_runner, temp_db,
        "payment", "pay", "--supplier", "1",
        "--invoice", "1=200", "--invoice", "2=300",
        "--advance", "100", "--account", "1000",
    )

    assert result.exit_code == 0
    assert "cash Rs. 160.00, advance Rs. 40.00" in result.output
    assert "cash Rs. 240.00, advance Rs. 60.00" in result.output


def test_pay_more_than_pending(cli_runner, temp_db, posting_service, sample_supplier):
    first, _ = sample_supplier["invoices"]
    result = _invoke(
        cli_runner, temp_db,
        "payment", "pay", "--supplier", str(sample_supplier["id"]),
        "--invoice", f"{first}=200.01", "--account", "1000",
    )

    assert result.exit_code == 1
    assert f"invoice {first} exceeds pending amount" in result.output
    assert "posted" not in result.output


def test_pay_bad_selection_format(cli_runner, temp_db, sample_supplier):
    result = _invoke(
        cli_runner, temp_db, "payment", "pay", "--supplier", "1", "--invoice", "200"
    )
    assert result.exit_code == 1
    assert "expected ID=AMOUNT" in result.output


def test_pay_cash_needs_account(cli_runner, temp_db, posting_service, sample_supplier):
    first, _ = sample_supplier["invoices"]
    result = _invoke(
        cli_runner, temp_db,
        "payment", "pay", "--supplier", str(sample_supplier["id"]), "--invoice", f"{first}=50",
    )
    assert result.exit_code == 1
    assert "payment account is required" in result.output


def test_fee_schedule_lifecycle(cli_runner, temp_db):
    created = _invoke(cli_runner, temp_db, "fee", "create", "leopards-cod", "--default-fee", "150")
    assert created.exit_code == 0
    assert "Created fee schedule 'leopards-cod'" in created.output

    _invoke(cli_runner, temp_db, "fee", "add-rule", "leopards-cod", "--min", "1", "--max", "5", "--fee", "10")
    shown = _invoke(cli_runner, temp_db, "fee", "add-rule", "leopards-cod", "--min", "6", "--fee", "20")
    assert " 1. 1 to 5: Rs. 10.00" in shown.output
    assert " 2. 6 and above: Rs. 20.00" in shown.output

    for value, fee in [("5", "Rs. 10.00"), ("6", "Rs. 20.00"), ("1000", "Rs. 20.00")]:
        result = _invoke(cli_runner, temp_db, "fee", "evaluate", "leopards-cod", value)
        assert result.exit_code == 0
        assert f"Fee: {fee}" in result.output

    removed = _invoke(cli_runner, temp_db, "fee", "remove-rule", "leopards-cod", "2")
    assert "and above" not in removed.output
    result = _invoke(cli_runner, temp_db, "fee", "evaluate", "leopards-cod", "1000")
    assert "Fee: Rs. 150.00" in result.output


def test_fee_show_all(cli_runner, temp_db):
    empty = _invoke(cli_runner, temp_db, "fee", "show")
    assert "No fee schedules found." in empty.output

    _invoke(cli_runner, temp_db, "fee", "create", "tcs", "--mode", "percentage", "--percentage", "2.5")
    _invoke(cli_runner, temp_db, "fee", "create", "flat", "--mode", "FIXED", "--fixed", "99")
    result = _invoke(cli_runner, temp_db, "fee", "show")
    assert "flat (FIXED, COD)" in result.output
    assert "Fixed fee: Rs. 99.00" in result.output
    assert "tcs (PERCENTAGE, COD)" in result.output


def test_fee_remove_bad_position(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "fee", "create", "empty")
    result = _invoke(cli_runner, temp_db, "fee", "remove-rule", "empty", "1")
    assert result.exit_code == 1
    assert "No fee rule at position 1" in result.output


def test_fee_unknown_schedule(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "fee", "evaluate", "nope", "100")
    assert result.exit_code == 1
    assert "Fee schedule 'nope' not found" in result.output


def test_shipping_quote(cli_runner, temp_db, tmp_path):
    config_file = tmp_path / "shipping.json"
    config_file.write_text(
        json.dumps(
            {
                "cityCharges": {"Lahore": 150},
                "quantityRules": [{"min": 1, "max": 1, "charge": 0}],
                "defaultQuantityCharge": 50,
            }
        )
    )

    result = _invoke(
        cli_runner, temp_db,
        "shipping", "quote", str(config_file), "--city", "lahore", "--quantity", "1", "--quantity", "3",
    )

    assert result.exit_code == 0
    assert "Shipping: Rs. 250.00" in result.output


def test_shipping_quote_bad_config(cli_runner, temp_db, tmp_path):
    config_file = tmp_path / "shipping.json"
    config_file.write_text("{not json")
    result = _invoke(cli_runner, temp_db, "shipping", "quote", str(config_file))
    assert result.exit_code == 1
    assert "Invalid JSON" in result.output

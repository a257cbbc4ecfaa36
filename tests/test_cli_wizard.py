import pytest
from unittest.mock import patch, MagicMock

from enrollment.gateway.schemas import OtpVerifyResponse, PinCreateResponse, RegistrationStartResponse
from scripts import cli_wizard


@patch("scripts.cli_wizard.Ticker")
@patch("scripts.cli_wizard.getpass.getpass")
@patch("builtins.input")
@patch("scripts.cli_wizard.BackendGateway")
def test_wizard_runs_to_done(mock_gw_cls, mock_input, mock_getpass, mock_ticker, capsys):
    gateway = MagicMock()
    gateway.start_registration.return_value = RegistrationStartResponse(userId="u1")
    gateway.verify_otp.return_value = OtpVerifyResponse(status="OTP_VERIFIED")
    gateway.create_pin.return_value = PinCreateResponse(status="ACTIVE")
    mock_gw_cls.return_value.__enter__.return_value = gateway

    mock_input.side_effect = [
        "n",                      # terms refused first
        "y",
        "784199012345671", "Ali Khan",
        "0501234567", "ali@example.com", "male",
        "482913",
    ]
    mock_getpass.side_effect = ["113355", "113356", "113355", "113355"]

    assert cli_wizard.main() == 0

    gateway.create_pin.assert_called_once_with(user_id="u1", pin="113355", pin_confirm="113355")
    out = capsys.readouterr().out
    assert "Please accept the terms" in out
    assert "PINs do not match" in out
    assert "Your account is active" in out


@patch("scripts.cli_wizard.Ticker")
@patch("builtins.input")
@patch("scripts.cli_wizard.BackendGateway")
def test_wizard_restart_goes_back_to_terms(mock_gw_cls, mock_input, mock_ticker):
    gateway = MagicMock()
    mock_gw_cls.return_value.__enter__.return_value = gateway
    mock_input.side_effect = ["y", "restart", "exit"]

    with pytest.raises(SystemExit) as exc:
        cli_wizard.main()
    assert exc.value.code == 0

    # Third prompt is the terms question again
    assert "terms" in mock_input.call_args_list[2].args[0]
    gateway.start_registration.assert_not_called()

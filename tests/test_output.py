"""Tests for the output formatter."""

import io

from rich.console import Console

from spadeploy.output import OutputFormatter


def _formatter(quiet: bool = False):
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, no_color=True, highlight=False)
    out = OutputFormatter(quiet=quiet, console=console)
    err_buffer = io.StringIO()
    out.err_console = Console(file=err_buffer, width=200, no_color=True)
    return out, buffer, err_buffer


class TestOutputFormatter:
    """Tests for OutputFormatter."""

    def test_info_and_success(self):
        out, buffer, _ = _formatter()
        out.info("Uploading index.html")
        out.success("Done!")
        assert buffer.getvalue() == "Uploading index.html\nDone!\n"

    def test_markup_is_not_interpreted(self):
        out, buffer, _ = _formatter()
        out.print("[bold]static/[id].js")
        assert "[bold]static/[id].js" in buffer.getvalue()

    def test_quiet_suppresses_info(self):
        out, buffer, err = _formatter(quiet=True)
        out.info("hidden")
        out.banner("hidden")
        out.variable("stage", "prod")
        out.print_summary("Deploy Complete", [("Uploaded", "1")])
        out.warning("shown")
        assert buffer.getvalue() == ""
        assert "Warning: shown" in err.getvalue()

    def test_error_goes_to_stderr(self):
        out, buffer, err = _formatter()
        out.error("AWS Region is not set")
        assert buffer.getvalue() == ""
        assert err.getvalue() == "Error: AWS Region is not set\n"

    def test_variable(self):
        out, buffer, _ = _formatter()
        out.variable("s3.bucket", "deploy-bucket")
        assert buffer.getvalue() == "s3.bucket: deploy-bucket\n"

    def test_summary(self):
        out, buffer, _ = _formatter()
        out.print_summary("Deploy Complete", [("Uploaded", "3"), ("Deleted", "1")])
        text = buffer.getvalue()
        assert "Deploy Complete" in text
        assert "Uploaded" in text
        assert "3" in text

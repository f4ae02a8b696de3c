import typer

from jcr_rest_client.cli.publish import mark_area, publish, unmark_area
from jcr_rest_client.cli.query import query_app
from jcr_rest_client.cli.repo import repo_app
from jcr_rest_client.cli.serve import serve_app

app = typer.Typer(
    name="jcr-rest",
    help="Publish files to a content repository and query it over its REST API.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("publish")(publish)
app.command("mark-area")(mark_area)
app.command("unmark-area")(unmark_area)
app.add_typer(query_app, name="query")
app.add_typer(repo_app, name="repo")
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()

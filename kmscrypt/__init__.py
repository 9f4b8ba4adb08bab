from click import ClickException
import google.auth


def get_project_id() -> str:
    _, project_id = google.auth.default()
    if not project_id:
        raise ClickException(
            """Unable to determine the project ID. Please ensure you have
            configured your GCP project correctly."""
        )

    return project_id

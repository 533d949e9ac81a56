from .config import ResolverSettings

PUBLISHER = "google"


def vertex_host(region: str) -> str:
    return f"https://{region}-aiplatform.googleapis.com"


def publisher_catalog_url(settings: ResolverSettings) -> str:
    return f"{vertex_host(settings.region)}/v1beta1/publishers/{PUBLISHER}/models"


def publisher_model_url(settings: ResolverSettings, model_id: str, method: str) -> str:
    """URL of a project-scoped publisher model method, e.g. ``predict``."""
    return (
        f"{vertex_host(settings.region)}/v1/projects/{settings.project_id}"
        f"/locations/{settings.region}/publishers/{PUBLISHER}/models/{model_id}:{method}"
    )


def last_path_segment(resource_name: str) -> str:
    return resource_name.rstrip("/").rsplit("/", 1)[-1]

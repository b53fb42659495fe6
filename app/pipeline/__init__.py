"""Repository fetching and builds for the deployment pipeline."""

from app.pipeline.builder import BuildRunner, ProjectKind, ProjectType, detect_project_type
from app.pipeline.fetcher import RepositoryFetcher, extract_tarball

__all__ = [
    "BuildRunner",
    "ProjectKind",
    "ProjectType",
    "detect_project_type",
    "RepositoryFetcher",
    "extract_tarball",
]

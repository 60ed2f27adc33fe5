"""Version-control metadata for ingested files."""

from codecontext.vcs.git import CommitInfo, GitClient, VcsMetadataFetcher

__all__ = ["CommitInfo", "GitClient", "VcsMetadataFetcher"]

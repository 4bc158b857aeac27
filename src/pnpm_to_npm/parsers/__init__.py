"""Readers for pnpm lockfiles, package.json manifests and npm semver ranges."""

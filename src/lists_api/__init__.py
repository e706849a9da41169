"""
Todo Lists backend package.

Named todo lists with ordered tasks, served by FastAPI over a pluggable
List Store (memory, sqlite or mongo). The application is built by
`src.lists_api.main.create_app`; `src.lists_api.main.app` is the instance
configured from the environment.
"""

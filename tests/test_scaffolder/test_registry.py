"""Tests for the template registry and the rendered backend sources.

Covers:
- Role selection per database
- Output paths per language
- Rendered content for each database / language combination
- Lookup failures for unregistered combinations
- The .env.example union and the README
"""

from __future__ import annotations

import pytest

from create_another_app.errors import TemplateLookupError
from create_another_app.scaffolder import registry
from create_another_app.scaffolder.models import Database
from create_another_app.scaffolder.registry import TemplateRole
from create_another_app.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestLookup:
    def test_database_specific_template(self):
        assert registry.template_for(TemplateRole.ENTRY, Database.MONGODB) == "backend/entry/mongodb.j2"

    def test_database_agnostic_fallback(self):
        assert registry.template_for(TemplateRole.ENV_BASE, Database.POSTGRESQL) == "env/base.j2"

    def test_unregistered_combination_raises(self):
        with pytest.raises(TemplateLookupError) as exc_info:
            registry.template_for(TemplateRole.CONTROLLER, Database.NONE)
        assert exc_info.value.role == "controller"
        assert exc_info.value.database == "none"
        assert isinstance(exc_info.value, LookupError)

    def test_every_registered_template_exists(self):
        renderer = TemplateRenderer()
        for path in registry._TEMPLATES.values():
            assert renderer.has_template(path), path


# ---------------------------------------------------------------------------
# Roles and paths
# ---------------------------------------------------------------------------


class TestRolesAndPaths:
    def test_no_database_has_only_entry(self, make_config):
        assert registry.backend_roles(make_config()) == [TemplateRole.ENTRY]

    @pytest.mark.parametrize("database", ["mongodb", "postgresql"])
    def test_database_adds_data_layer(self, make_config, database):
        roles = registry.backend_roles(make_config(database=database))
        assert roles == [
            TemplateRole.ENTRY,
            TemplateRole.DB_CONNECTION,
            TemplateRole.DATA_ACCESS,
            TemplateRole.CONTROLLER,
            TemplateRole.ROUTES,
        ]

    def test_javascript_mongodb_paths(self, make_config):
        config = make_config(database="mongodb")
        paths = [registry.output_path(role, config) for role in registry.backend_roles(config)]
        assert paths == [
            "index.mjs",
            "db/database.mjs",
            "models/user.model.mjs",
            "controllers/user.controller.mjs",
            "routes/user.routes.mjs",
        ]

    def test_typescript_postgresql_paths(self, ts_postgres_config):
        config = ts_postgres_config
        paths = [registry.output_path(role, config) for role in registry.backend_roles(config)]
        assert paths == [
            "src/index.mts",
            "src/db/db.mts",
            "src/queries/user.queries.mts",
            "src/controllers/user.controller.mts",
            "src/routes/user.routes.mts",
        ]

    @pytest.mark.parametrize(
        "name, expected",
        [("my-app", "my_app"), ("API", "api"), ("shop_2", "shop_2")],
    )
    def test_database_name(self, name, expected):
        assert registry.database_name(name) == expected


# ---------------------------------------------------------------------------
# Rendered sources
# ---------------------------------------------------------------------------


class TestEntryPoint:
    def test_plain_javascript_entry(self, make_config):
        content = registry.render(TemplateRole.ENTRY, make_config())
        assert content.startswith("import express from 'express';")
        assert "dotenv" not in content
        assert "import type" not in content
        assert "app.get('/api/health', (req, res) =>" in content
        assert "userRoutes" not in content

    def test_env_feature_loads_dotenv_first(self, make_config):
        content = registry.render(TemplateRole.ENTRY, make_config(additional_features=["env"]))
        assert content.splitlines()[0] == "import 'dotenv/config';"
        assert content.count("dotenv") == 1

    def test_mongodb_entry(self, make_config):
        content = registry.render(TemplateRole.ENTRY, make_config(database="mongodb"))
        assert content.splitlines()[0] == "import 'dotenv/config';"
        assert "import { connectDB } from './db/database.mjs';" in content
        assert "await connectDB();" in content
        assert "app.use('/api', userRoutes);" in content

    def test_typescript_postgresql_entry(self, ts_postgres_config):
        content = registry.render(TemplateRole.ENTRY, ts_postgres_config)
        assert "import type { Request, Response } from 'express';" in content
        assert "import pool from './db/db.mjs';" in content
        assert "(req: Request, res: Response) =>" in content
        assert "(err: Error | undefined) =>" in content


class TestDataLayer:
    def test_mongodb_connection_error_message(self, make_config):
        js = registry.render(TemplateRole.DB_CONNECTION, make_config(database="mongodb"))
        ts = registry.render(
            TemplateRole.DB_CONNECTION,
            make_config(database="mongodb", backend_template="express-ts"),
        )
        assert "${error.message}" in js
        assert "${(error as Error).message}" in ts

    def test_postgresql_connection_exports_pool(self, make_config):
        content = registry.render(TemplateRole.DB_CONNECTION, make_config(database="postgresql"))
        assert "export const pool = new Pool({" in content
        assert "export default pool;" in content

    def test_postgresql_queries(self, make_config):
        content = registry.render(TemplateRole.DATA_ACCESS, make_config(database="postgresql"))
        for name in ("CREATE_USERS_TABLE", "CHECK_USER_EXISTS", "GET_USER_BY_EMAIL_ID", "GET_USERS", "INSERT_USER"):
            assert f"export const {name}" in content

    def test_mongodb_model(self, make_config):
        content = registry.render(TemplateRole.DATA_ACCESS, make_config(database="mongodb"))
        assert "mongoose.model('User', userSchema)" in content

    def test_postgresql_controller_typescript(self, ts_postgres_config):
        content = registry.render(TemplateRole.CONTROLLER, ts_postgres_config)
        assert "process.env.JWT_SECRET as string," in content
        assert "from '../queries/user.queries.mjs';" in content
        assert "export { signup, login, getAllUsers };" in content

    def test_postgresql_controller_javascript(self, make_config):
        content = registry.render(TemplateRole.CONTROLLER, make_config(database="postgresql"))
        assert "process.env.JWT_SECRET," in content
        assert "as string" not in content
        assert "import type" not in content

    @pytest.mark.parametrize(
        "database, handlers",
        [
            ("mongodb", ["getAllUsers", "getUserById", "createUser", "updateUser", "deleteUser"]),
            ("postgresql", ["signup", "login", "getAllUsers"]),
        ],
    )
    def test_routes_use_controller_exports(self, make_config, database, handlers):
        config = make_config(database=database)
        controller = registry.render(TemplateRole.CONTROLLER, config)
        routes = registry.render(TemplateRole.ROUTES, config)
        assert "from '../controllers/user.controller.mjs';" in routes
        for handler in handlers:
            assert handler in controller
            assert f", {handler});" in routes


# ---------------------------------------------------------------------------
# .env.example
# ---------------------------------------------------------------------------


class TestEnvTemplate:
    def test_env_feature_only(self, make_config):
        content = registry.render_env(make_config(additional_features=["env"]))
        assert content == "# Environment Variables\nNODE_ENV=development\nPORT=5000\n"

    def test_mongodb_section(self, make_config):
        content = registry.render_env(make_config(project_name="shop", database="mongodb"))
        assert "MONGODB_URI=mongodb://localhost:27017/" in content
        assert "DB_NAME=shop" in content

    def test_env_and_database_union(self, ts_postgres_config):
        content = registry.render_env(ts_postgres_config)
        lines = content.splitlines()
        keys = [line.split("=", 1)[0] for line in lines if "=" in line and not line.startswith("#")]
        assert len(keys) == len(set(keys))
        assert keys == [
            "NODE_ENV",
            "PORT",
            "DB_HOST",
            "DB_PORT",
            "DB_NAME",
            "DB_USER",
            "DB_PASSWORD",
            "JWT_SECRET",
        ]
        assert "DB_NAME=api" in content

    def test_merge_drops_duplicates_and_empty_sections(self):
        merged = registry.merge_env_sections(
            [
                "# Base\nPORT=5000\n",
                "# Again\nPORT=6000\n",
                "# Extra\nPORT=7000\nHOST=localhost\n",
            ]
        )
        assert merged == "# Base\nPORT=5000\n\n# Extra\nHOST=localhost\n"


# ---------------------------------------------------------------------------
# README
# ---------------------------------------------------------------------------


class TestReadme:
    def test_fullstack_readme(self, fullstack_config):
        content = registry.render_readme(fullstack_config)
        assert content.startswith("# my-app\n\nA full stack application")
        assert "cd frontend" in content and "cd backend" in content
        assert "- React (Vite)" in content
        assert "- Tailwind CSS v4 for styling" in content
        assert "- Express.js backend\n" in content
        assert ".env" not in content
        assert content.rstrip().endswith("MIT")

    def test_backend_readme_with_env_file(self, ts_postgres_config):
        content = registry.render_readme(ts_postgres_config, ".env.example")
        assert "A backend application" in content
        assert "cd frontend" not in content
        assert "Copy `.env.example` to `.env`" in content
        assert "- Express.js backend with TypeScript" in content
        assert "- PostgreSQL integration with pg" in content
        assert "- Environment variables setup" in content

    def test_frontend_readme(self, next_frontend_config):
        lines = registry.readme_feature_lines(next_frontend_config)
        assert lines == ["Next.js with TypeScript"]

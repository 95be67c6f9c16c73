"""Category management commands."""

import click

from financeos.cli.error_handling import handle_domain_error, require_business
from financeos.domain.category import CategoryService
from financeos.domain.entities import CategoryType
from financeos.domain.errors import DomainError
from financeos.utils.category_resolver import resolve_category

TYPE_CHOICE = click.Choice([t.value for t in CategoryType], case_sensitive=False)


def _resolve(ctx, service: CategoryService, business_id: int, category: str) -> int:
    try:
        return resolve_category(service, business_id, category)
    except DomainError as e:
        handle_domain_error(ctx, e)


def _print_tree(nodes: list[dict], indent: int = 0) -> None:
    for node in nodes:
        status = "" if node["is_active"] else " (inactive)"
        click.echo(f"{'  ' * indent}{node['name']} [{node['category_type'].value}] (ID: {node['id']}){status}")
        _print_tree(node["children"], indent + 1)


@click.group()
def category_group():
    """Manage transaction categories."""
    pass


@category_group.command("create")
@click.argument("name", metavar="CATEGORY_NAME")
@click.option("--type", "category_type", type=TYPE_CHOICE, required=True, help="Category type")
@click.option("--parent", help="Parent category name or ID")
@click.option("--description", help="Category description")
@click.pass_context
def create_category(ctx, name: str, category_type: str, parent: str | None, description: str | None):
    """Create a new category.

    Examples:
        financeos category create "Hosting" --type EXPENSE --parent "Software & Subscriptions"
    """
    db = ctx.obj["db"]
    service = CategoryService(db)
    business_id = require_business(ctx)

    parent_id = _resolve(ctx, service, business_id, parent) if parent else None

    try:
        cat = service.create_category(
            business_id,
            name,
            CategoryType(category_type.upper()),
            parent_id=parent_id,
            description=description,
        )
        click.echo(f"Created category '{cat.name}' (ID: {cat.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("list")
@click.option("--type", "category_type", type=TYPE_CHOICE, help="Only categories of this type")
@click.option("--tree", is_flag=True, help="Show the category hierarchy")
@click.option("--all", "show_all", is_flag=True, help="Include inactive categories")
@click.pass_context
def list_categories(ctx, category_type: str | None, tree: bool, show_all: bool):
    """List categories."""
    db = ctx.obj["db"]
    service = CategoryService(db)
    business_id = require_business(ctx)

    if tree:
        nodes = service.get_category_tree(business_id)
        if not nodes:
            click.echo("No categories found.")
            return
        _print_tree(nodes)
        return

    categories = service.list_categories(
        business_id,
        category_type=CategoryType(category_type.upper()) if category_type else None,
        active=None if show_all else True,
    )
    if not categories:
        click.echo("No categories found.")
        return

    click.echo("\nCategories:")
    click.echo("-" * 60)
    for cat in categories:
        status = "" if cat.is_active else " (inactive)"
        click.echo(f"ID: {cat.id:3d} | {cat.name:28s} | {cat.category_type.value}{status}")


@category_group.command("update")
@click.argument("category", metavar="CATEGORY")
@click.option("--name", help="New category name")
@click.option("--type", "category_type", type=TYPE_CHOICE, help="New category type")
@click.option("--description", help="New description")
@click.option("--parent", help="Parent category name or ID, or empty string to clear")
@click.option("--activate", is_flag=True, help="Reactivate an inactive category")
@click.pass_context
def update_category(
    ctx,
    category: str,
    name: str | None,
    category_type: str | None,
    description: str | None,
    parent: str | None,
    activate: bool,
):
    """Update a category.

    CATEGORY can be a category name or ID.
    """
    db = ctx.obj["db"]
    service = CategoryService(db)
    business_id = require_business(ctx)
    category_id = _resolve(ctx, service, business_id, category)

    parent_id = None
    clear_parent = False
    if parent is not None:
        if parent == "":
            clear_parent = True
        else:
            parent_id = _resolve(ctx, service, business_id, parent)

    try:
        cat = service.update_category(
            business_id,
            category_id,
            name=name,
            description=description,
            category_type=CategoryType(category_type.upper()) if category_type else None,
            is_active=True if activate else None,
            parent_id=parent_id,
            clear_parent=clear_parent,
        )
        click.echo(f"Updated category '{cat.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("deactivate")
@click.argument("category", metavar="CATEGORY")
@click.pass_context
def deactivate_category(ctx, category: str):
    """Deactivate a category so new transactions cannot use it."""
    db = ctx.obj["db"]
    service = CategoryService(db)
    business_id = require_business(ctx)

    try:
        cat = service.deactivate_category(business_id, _resolve(ctx, service, business_id, category))
        click.echo(f"Deactivated category '{cat.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("delete")
@click.argument("category", metavar="CATEGORY")
@click.pass_context
def delete_category(ctx, category: str):
    """Delete a category with no transactions and no subcategories."""
    db = ctx.obj["db"]
    service = CategoryService(db)
    business_id = require_business(ctx)
    category_id = _resolve(ctx, service, business_id, category)

    try:
        name = service.get_category(business_id, category_id).name
        service.delete_category(business_id, category_id)
        click.echo(f"Deleted category '{name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("seed")
@click.pass_context
def seed_categories(ctx):
    """Create the default categories (existing names are kept)."""
    db = ctx.obj["db"]
    service = CategoryService(db)
    business_id = require_business(ctx)

    try:
        created = service.seed_default_categories(business_id)
        click.echo(f"Created {created} categor{'ies' if created != 1 else 'y'}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")

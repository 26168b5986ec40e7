"""CLI entrypoint: Typer app definition and command registration"""

import typer

from docblocks.cli.commands import (
    add_blocks_cmd, add_chapter_cmd, add_heading_cmd, add_image_cmd, add_markdown_cmd,
    add_page_break_cmd, add_table_cmd, create_cmd, delete_block_cmd, delete_chapter_cmd,
    delete_cmd, export_cmd, find_cmd, get_block_cmd, get_blocks_cmd, list_cmd, move_block_cmd,
    move_chapter_cmd, overview_cmd, rename_chapter_cmd, search_cmd, update_block_cmd,
)


app = typer.Typer(name="docblocks", no_args_is_help=True, help="File-backed store for block-structured documents")

app.command(name="create")(create_cmd)
app.command(name="list")(list_cmd)
app.command(name="delete")(delete_cmd)
app.command(name="overview")(overview_cmd)
app.command(name="search")(search_cmd)
app.command(name="export")(export_cmd)

app.command(name="add-heading")(add_heading_cmd)
app.command(name="add-markdown")(add_markdown_cmd)
app.command(name="add-image")(add_image_cmd)
app.command(name="add-table")(add_table_cmd)
app.command(name="add-page-break")(add_page_break_cmd)
app.command(name="add-blocks")(add_blocks_cmd)
app.command(name="get-block")(get_block_cmd)
app.command(name="get-blocks")(get_blocks_cmd)
app.command(name="find")(find_cmd)
app.command(name="update-block")(update_block_cmd)
app.command(name="delete-block")(delete_block_cmd)
app.command(name="move-block")(move_block_cmd)

app.command(name="add-chapter")(add_chapter_cmd)
app.command(name="rename-chapter")(rename_chapter_cmd)
app.command(name="delete-chapter")(delete_chapter_cmd)
app.command(name="move-chapter")(move_chapter_cmd)

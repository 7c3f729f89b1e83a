# Copyright 2026 The bucketfs Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

import click
from google.api_core import exceptions as gcs_exceptions
from google.auth import exceptions as auth_exceptions

from .core.adapter import GoogleCloudStorageAdapter
from .logging import configure_structlog
from .models import Descriptor, Visibility
from .utils.config import create_adapter, load_config
from .utils.exceptions import BucketFSError, ConfigurationError


class CLIContext:
    """
    Container for CLI dependency injection.

    Configuration and the storage client are built on first use, so
    `--help` and usage errors never need credentials.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self._adapter: Optional[GoogleCloudStorageAdapter] = None

    @property
    def adapter(self) -> GoogleCloudStorageAdapter:
        if self._adapter is None:
            self._adapter = create_adapter(load_config(self.config_path))
        return self._adapter


@contextmanager
def _reporting_errors(ctx):
    """Turn adapter and backend failures into a message and exit code 1."""
    try:
        yield
    except (ConfigurationError, auth_exceptions.DefaultCredentialsError) as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        ctx.exit(1)
    except gcs_exceptions.NotFound as e:
        click.echo(f"❌ Not found: {e.message}", err=True)
        ctx.exit(1)
    except (BucketFSError, gcs_exceptions.GoogleAPIError) as e:
        click.echo(f"❌ {e}", err=True)
        ctx.exit(1)


def _format_entry(entry: Descriptor, long: bool) -> str:
    name = f"{entry.path}/" if entry.is_dir else entry.path
    if not long:
        return name

    modified = "-"
    if entry.timestamp is not None:
        modified = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
    size = "-" if entry.is_dir else str(entry.size or 0)
    return f"{entry.type.value:<4} {size:>10} {modified:<16} {name}"


@click.group()
@click.option("--config", "-c", help="Path to .env config file")
@click.pass_context
def main(ctx, config):
    """bucketfs - Google Cloud Storage bucket as a filesystem"""
    configure_structlog()
    ctx.obj = CLIContext(config)


@main.command("ls")
@click.argument("directory", default="")
@click.option("--recursive", "-r", is_flag=True, help="Include nested directories")
@click.option("--long", "-l", "long_format", is_flag=True, help="Show type, size and modification time")
@click.pass_context
def list_directory(ctx, directory, recursive, long_format):
    """List the contents of a directory"""
    with _reporting_errors(ctx):
        entries = ctx.obj.adapter.list_contents(directory, recursive=recursive)

    for entry in entries:
        click.echo(_format_entry(entry, long_format))


@main.command()
@click.argument("path")
@click.pass_context
def cat(ctx, path):
    """Write a file's contents to stdout"""
    with _reporting_errors(ctx):
        descriptor = ctx.obj.adapter.read(path)

    click.echo(descriptor.contents, nl=False)


@main.command()
@click.argument("local", type=click.Path(exists=True, dir_okay=False))
@click.argument("remote")
@click.option("--public", is_flag=True, help="Make the uploaded file publicly readable")
@click.option("--mimetype", help="Content type (inferred from the name when omitted)")
@click.pass_context
def put(ctx, local, remote, public, mimetype):
    """Upload a local file"""
    options = {"visibility": Visibility.PUBLIC if public else Visibility.PRIVATE}
    if mimetype:
        options["mimetype"] = mimetype

    with _reporting_errors(ctx), open(local, "rb") as stream:
        descriptor = ctx.obj.adapter.write_stream(remote, stream, options)

    click.echo(f"✓ Uploaded {descriptor.path} ({descriptor.size} bytes, {descriptor.mimetype})")


@main.command()
@click.argument("path")
@click.pass_context
def rm(ctx, path):
    """Delete a file"""
    with _reporting_errors(ctx):
        ctx.obj.adapter.delete(path)
    click.echo(f"✓ Deleted {path}")


@main.command()
@click.argument("directory")
@click.option("--public", is_flag=True, help="Make the directory marker publicly readable")
@click.pass_context
def mkdir(ctx, directory, public):
    """Create a directory"""
    options = {"visibility": Visibility.PUBLIC if public else Visibility.PRIVATE}
    with _reporting_errors(ctx):
        descriptor = ctx.obj.adapter.create_dir(directory, options)
    click.echo(f"✓ Created {descriptor.path}/")


@main.command()
@click.argument("directory")
@click.pass_context
def rmdir(ctx, directory):
    """Delete a directory and everything under it"""
    with _reporting_errors(ctx):
        ctx.obj.adapter.delete_dir(directory)
    click.echo(f"✓ Deleted {directory.rstrip('/')}/")


@main.command()
@click.argument("source")
@click.argument("destination")
@click.pass_context
def cp(ctx, source, destination):
    """Copy a file, keeping its visibility"""
    with _reporting_errors(ctx):
        ctx.obj.adapter.copy(source, destination)
    click.echo(f"✓ Copied {source} -> {destination}")


@main.command()
@click.argument("source")
@click.argument("destination")
@click.pass_context
def mv(ctx, source, destination):
    """Move a file"""
    with _reporting_errors(ctx):
        moved = ctx.obj.adapter.rename(source, destination)

    if not moved:
        click.echo(f"❌ Failed to move {source}", err=True)
        ctx.exit(1)
    click.echo(f"✓ Moved {source} -> {destination}")


@main.command()
@click.argument("path")
@click.argument("value", required=False, type=click.Choice([v.value for v in Visibility]))
@click.pass_context
def visibility(ctx, path, value):
    """Show or change a file's visibility"""
    with _reporting_errors(ctx):
        if value is None:
            descriptor = ctx.obj.adapter.get_visibility(path)
        else:
            descriptor = ctx.obj.adapter.set_visibility(path, value)

    click.echo(descriptor.visibility.value)


@main.command()
@click.argument("path")
@click.pass_context
def url(ctx, path):
    """Print the public URL of a file"""
    with _reporting_errors(ctx):
        public_url = ctx.obj.adapter.get_url(path)
    click.echo(public_url)


@main.command()
@click.argument("path")
@click.option("--expires", "-e", type=click.IntRange(min=1), default=3600, show_default=True,
              help="Lifetime in seconds")
@click.pass_context
def sign(ctx, path, expires):
    """Print a signed URL granting temporary access to a file"""
    with _reporting_errors(ctx):
        signed = ctx.obj.adapter.get_temporary_url(path, timedelta(seconds=expires), {"version": "v4"})
    click.echo(signed)


if __name__ == "__main__":
    main()

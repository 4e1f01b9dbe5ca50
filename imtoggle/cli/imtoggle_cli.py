# Copyright 2025-2026 Dimensional Inc.
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

from functools import partial
import inspect
import time
import types
from typing import Callable, Literal, Optional, Union, get_args, get_origin

import cv2
import typer

from imtoggle.conversion.dispatcher import convert as convert_image
from imtoggle.conversion.failures import ConversionFailure
from imtoggle.conversion.mode import Mode
from imtoggle.core.global_config import GlobalConfig
from imtoggle.core.module import shared_memory_rpc
from imtoggle.core.transport import MemoryTransport, pLCMTransport
from imtoggle.msgs.sensor_msgs.Image import Image
from imtoggle.protocol.rpc.lcmrpc import LCMRPC
from imtoggle.protocol.rpc.spec import RPCSpec
from imtoggle.toggle.image_toggle_module import ImageToggleModule
from imtoggle.utils.logging_config import setup_exception_handler

main = typer.Typer(no_args_is_help=True)


def _option_type(field_type: type) -> type:
    # Optional[T] / T | None -> T
    if get_origin(field_type) in (Union, types.UnionType):
        inner_types = [t for t in get_args(field_type) if t is not type(None)]
        if len(inner_types) == 1:
            field_type = inner_types[0]
    if get_origin(field_type) is Literal:
        return str
    return field_type


def create_dynamic_callback() -> Callable[..., None]:
    """Expose every GlobalConfig field as a global ``--kebab-case`` option."""
    params = [
        inspect.Parameter("ctx", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=typer.Context),
    ]

    for field_name, field_info in GlobalConfig.model_fields.items():
        actual_type = _option_type(field_info.annotation)
        cli_option_name = field_name.replace("_", "-")

        if actual_type is bool:
            flags = (f"--{cli_option_name}/--no-{cli_option_name}",)
        else:
            flags = (f"--{cli_option_name}",)

        params.append(
            inspect.Parameter(
                field_name,
                inspect.Parameter.KEYWORD_ONLY,
                # None means use the model's default if not provided
                default=typer.Option(None, *flags, help=f"Override {field_name} in GlobalConfig"),
                annotation=Optional[actual_type],  # noqa: UP045
            )
        )

    def callback(**kwargs) -> None:
        ctx = kwargs.pop("ctx")
        overrides = {k: v for k, v in kwargs.items() if v is not None}
        ctx.obj = GlobalConfig(**overrides)

    callback.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]

    return callback


main.callback()(create_dynamic_callback())


def rpc_client_factory(config: GlobalConfig) -> Callable[[], RPCSpec]:
    if config.transport == "lcm":
        return partial(LCMRPC, url=config.lcm_url)
    return shared_memory_rpc


def build_module(config: GlobalConfig) -> ImageToggleModule:
    """Create the image toggle module wired to the configured transport and topics."""
    if config.transport == "lcm":
        make_transport = partial(pLCMTransport, url=config.lcm_url)
    else:
        make_transport = MemoryTransport

    module = ImageToggleModule(
        grayscale=config.grayscale,
        rpc_transport=rpc_client_factory(config),
    )
    module.image_raw.transport = make_transport(config.input_topic)
    module.image_processed.transport = make_transport(config.output_topic)
    return module


@main.command()
def run(ctx: typer.Context) -> None:
    """Run the image toggle module until interrupted."""
    config: GlobalConfig = ctx.obj
    setup_exception_handler()

    module = build_module(config)
    module.start()
    typer.echo(module.io())

    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        module.stop()
        module.image_raw.transport.stop()
        module.image_processed.transport.stop()


@main.command()
def toggle(
    ctx: typer.Context,
    grayscale: bool = typer.Option(
        ..., "--grayscale/--color", help="Output mode to switch the running module to"
    ),
    timeout: float = typer.Option(5.0, help="Seconds to wait for the module to answer"),
) -> None:
    """Switch a running module between grayscale and color output."""
    config: GlobalConfig = ctx.obj
    client = rpc_client_factory(config)()
    client.start()
    try:
        response = client.call_sync(
            f"{ImageToggleModule.__name__}/toggle_grayscale",
            ([grayscale], {}),
            rpc_timeout=timeout,
        )
    except TimeoutError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e
    finally:
        client.stop()

    typer.echo(response.message)


@main.command()
def convert(
    ctx: typer.Context,
    input_path: str = typer.Argument(..., help="Image file to convert"),
    output_path: str = typer.Argument(..., help="Where to write the converted image"),
    grayscale: Optional[bool] = typer.Option(  # noqa: UP045
        None, "--grayscale/--color", help="Output mode, defaults to the configured mode"
    ),
) -> None:
    """Convert a single image file the same way the module converts frames."""
    config: GlobalConfig = ctx.obj
    mode = Mode.from_grayscale(config.grayscale if grayscale is None else grayscale)

    try:
        image = Image.from_file(input_path)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e

    result = convert_image(image, mode)
    if isinstance(result, ConversionFailure):
        typer.echo(result.describe(), err=True)
        raise typer.Exit(code=1)

    try:
        written = result.save(output_path)
    except cv2.error as e:
        typer.echo(f"Could not write {output_path}: {e}", err=True)
        raise typer.Exit(code=1) from e
    if not written:
        typer.echo(f"Could not write {output_path}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{input_path} ({image.encoding}) -> {output_path} ({result.encoding})")


@main.command()
def show_config(ctx: typer.Context) -> None:
    """Show current configuration status."""
    config: GlobalConfig = ctx.obj

    for field_name, value in config.model_dump().items():
        typer.echo(f"{field_name}: {value}")


if __name__ == "__main__":
    main()

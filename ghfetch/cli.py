"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
import toml
import yaml
from loguru import logger

from ghfetch.exceptions import ConfigParseError, GhFetchError
from ghfetch.logger import setup_logger
from ghfetch.models import NotFound, Redirect, SourceConfig
from ghfetch.source import GitHubSource

EXIT_NOT_FOUND = 2


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise ConfigParseError(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            data = toml.load(config_path)
        elif suffix == ".json":
            data = json.loads(path.read_text())
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text())
        else:
            raise ConfigParseError(f"不支持的配置文件格式: {suffix}")
    except (ValueError, OSError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"解析配置文件失败: {e}", context={"path": config_path}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError("配置文件顶层必须是映射", context={"path": config_path})
    # 允许把包源配置放在 [github] 小节中
    section = data.get("github")
    return section if isinstance(section, dict) else data


def build_config(
    config_path: Optional[str], overrides: Dict[str, Any]
) -> SourceConfig:
    """合并配置文件与命令行参数"""
    values = load_config(config_path) if config_path else {}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SourceConfig.from_dict(values)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True))


def run(coro):
    """运行异步操作，并把 GhFetchError 转为 click 异常"""
    try:
        return asyncio.run(coro)
    except GhFetchError as e:
        logger.error(f"[错误] {e}")
        raise click.ClickException(str(e))


async def _lookup(config: SourceConfig, repo: str):
    async with GitHubSource(config) as source:
        return await source.lookup(repo)


async def _download(
    config: SourceConfig, repo: str, version: str, hash: Optional[str], target: str
):
    async with GitHubSource(config) as source:
        await source.download(repo, version, hash or "", target)


async def _package_config(config: SourceConfig, repo: str, version: str, hash: str):
    async with GitHubSource(config) as source:
        return await source.get_package_config(repo, version, hash)


@click.group()
@click.option(
    "-c", "--config", "config_path", type=click.Path(exists=True), help="配置文件路径"
)
@click.option("--username", envvar="GHFETCH_USERNAME", help="GitHub 用户名")
@click.option("--password", envvar="GHFETCH_PASSWORD", help="GitHub 密码或令牌")
@click.option("--timeout", type=float, help="超时时间（秒）")
@click.option("--tmp-dir", help="临时目录")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version="0.1.0")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    username: Optional[str],
    password: Optional[str],
    timeout: Optional[float],
    tmp_dir: Optional[str],
    debug: bool,
):
    """ghfetch - GitHub 包版本解析与下载工具"""
    setup_logger(
        level="DEBUG" if debug else None,
        sink=lambda message: click.echo(message, err=True, nl=False),
        enqueue=False,
    )

    try:
        ctx.obj = build_config(
            config_path,
            {
                "username": username,
                "password": password,
                "timeout": timeout,
                "tmp_dir": tmp_dir,
            },
        )
    except GhFetchError as e:
        raise click.ClickException(str(e))


@main.command()
@click.argument("repo")
@click.pass_obj
def lookup(config: SourceConfig, repo: str):
    """列出仓库的所有版本"""
    result = run(_lookup(config, repo))

    if isinstance(result, Redirect):
        echo_json({"redirect": result.repository})
    elif isinstance(result, NotFound):
        echo_json({"notfound": True})
        click.get_current_context().exit(EXIT_NOT_FOUND)
    else:
        echo_json({"versions": result.versions})


@main.command()
@click.argument("name")
@click.argument("version")
@click.argument("target", type=click.Path(file_okay=False))
@click.option("--hash", "hash", help="版本对应的提交哈希")
@click.pass_obj
def download(
    config: SourceConfig, name: str, version: str, target: str, hash: Optional[str]
):
    """下载指定版本到 TARGET 目录"""
    parsed = GitHubSource.parse(name)
    run(_download(config, parsed.package, version, hash, target))
    click.echo(f"{parsed.package}@{version} -> {target}")


@main.command("package-config")
@click.argument("repo")
@click.argument("hash")
@click.option("--version", "version", default="", help="版本名（仅用于错误信息）")
@click.pass_obj
def package_config(config: SourceConfig, repo: str, hash: str, version: str):
    """获取指定提交下的包描述文件"""
    echo_json(run(_package_config(config, repo, version, hash)))


if __name__ == "__main__":
    main()

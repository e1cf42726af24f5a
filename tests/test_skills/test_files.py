from pathlib import Path

import pytest

from benchmate.skills.files import MAX_READ_BYTES, ReadFileSkill, WriteFileSkill
from benchmate.skills.registry import SkillRegistry


@pytest.mark.asyncio
async def test_read_full_file(tmp_path: Path):
    target = tmp_path / "notes.txt"
    target.write_text("one\ntwo\nthree", encoding="utf-8")

    result = await ReadFileSkill().execute(path=str(target))

    assert result.success is True
    assert result.output == "one\ntwo\nthree"


@pytest.mark.asyncio
async def test_read_line_range_is_inclusive(tmp_path: Path):
    target = tmp_path / "pins.txt"
    target.write_text("a\nb\nc\nd\n", encoding="utf-8")

    result = await ReadFileSkill().execute(path=str(target), start_line=2, end_line=3)

    assert result.output == "b\nc"


@pytest.mark.asyncio
async def test_read_line_range_from_text_arguments(tmp_path: Path):
    target = tmp_path / "pins.txt"
    target.write_text("a\nb\nc\nd", encoding="utf-8")
    registry = SkillRegistry()
    registry.register(ReadFileSkill())

    result = await registry.execute("read_file", {"path": str(target), "start_line": "3"})

    assert result.success is True
    assert result.output == "c\nd"


@pytest.mark.asyncio
async def test_read_missing_file(tmp_path: Path):
    missing = tmp_path / "nope.txt"
    result = await ReadFileSkill().execute(path=str(missing))
    assert result.success is False
    assert result.error == f"File not found: {missing}"


@pytest.mark.asyncio
async def test_read_directory_is_rejected(tmp_path: Path):
    result = await ReadFileSkill().execute(path=str(tmp_path))
    assert result.success is False
    assert result.error.startswith("Not a file")


@pytest.mark.asyncio
async def test_read_rejects_large_file(tmp_path: Path):
    target = tmp_path / "big.bin"
    target.write_bytes(b"x" * (MAX_READ_BYTES + 1))
    result = await ReadFileSkill().execute(path=str(target))
    assert result.success is False
    assert "File too large" in result.error


@pytest.mark.asyncio
async def test_write_creates_parent_directories(tmp_path: Path):
    target = tmp_path / "deep" / "dir" / "out.txt"

    result = await WriteFileSkill().execute(path=str(target), content="hello")

    assert result.success is True
    assert result.output == f"Successfully wrote 5 characters to {target}"
    assert target.read_text(encoding="utf-8") == "hello"


@pytest.mark.asyncio
async def test_write_overwrites(tmp_path: Path):
    target = tmp_path / "out.txt"
    target.write_text("old", encoding="utf-8")

    await WriteFileSkill().execute(path=str(target), content="new")

    assert target.read_text(encoding="utf-8") == "new"

"""Tests for walking the local tree."""

import os
import sys

import pytest

from manifest_upload.exceptions import TraversalError
from manifest_upload.walker import walk_tree


class TestWalkTree:
    """Test which files the walker yields and how they are named."""
    
    def test_empty_directory(self, tmp_path):
        """Test that an empty directory yields nothing."""
        assert list(walk_tree(tmp_path)) == []
    
    def test_nested_files_use_posix_relative_paths(self, make_tree):
        """Test that every regular file is yielded once, relative to the root."""
        root = make_tree({
            "a.txt": b"a",
            "sub/b.txt": b"b",
            "sub/deeper/c.bin": b"c",
        })
        
        entries = list(walk_tree(root))
        
        assert sorted(entry.relative_path for entry in entries) == ["a.txt", "sub/b.txt", "sub/deeper/c.bin"]
        for entry in entries:
            assert entry.path == root / entry.relative_path
            assert entry.path.is_absolute()
    
    def test_single_file_root_uses_its_name(self, make_tree):
        """Test that a file root yields one entry named after the file."""
        root = make_tree({"only.txt": b"data"})
        
        entries = list(walk_tree(root / "only.txt"))
        
        assert len(entries) == 1
        assert entries[0].relative_path == "only.txt"
        assert entries[0].path == root / "only.txt"
    
    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlinks_are_skipped(self, make_tree, tmp_path):
        """Test that links to files and directories are not followed."""
        root = make_tree({"real.txt": b"real", "dir/inner.txt": b"inner"})
        outside = make_tree({"secret.txt": b"secret"}, name="outside")
        os.symlink(root / "real.txt", root / "link.txt")
        os.symlink(outside, root / "linked_dir")
        
        relative_paths = sorted(entry.relative_path for entry in walk_tree(root))
        
        assert relative_paths == ["dir/inner.txt", "real.txt"]
    
    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires mkfifo")
    def test_special_files_are_skipped(self, make_tree):
        """Test that FIFOs do not produce entries."""
        root = make_tree({"real.txt": b"real"})
        os.mkfifo(root / "pipe")
        
        assert [entry.relative_path for entry in walk_tree(root)] == ["real.txt"]
    
    def test_missing_root_raises(self, tmp_path):
        """Test that a root that does not exist is a traversal error."""
        with pytest.raises(TraversalError):
            list(walk_tree(tmp_path / "missing"))
    
    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits are not enforced",
    )
    def test_unreadable_directory_raises(self, make_tree):
        """Test that a directory that cannot be listed aborts the walk."""
        root = make_tree({"ok.txt": b"ok", "locked/hidden.txt": b"hidden"})
        locked = root / "locked"
        locked.chmod(0o000)
        
        try:
            with pytest.raises(TraversalError) as exc_info:
                list(walk_tree(root))
            assert str(locked) in exc_info.value.details["path"]
        finally:
            locked.chmod(0o755)
    
    def test_many_files(self, make_tree):
        """Test that a wide tree yields each file exactly once."""
        files = {f"dir{i % 7}/file{i}.dat": str(i).encode() for i in range(150)}
        root = make_tree(files)
        
        relative_paths = [entry.relative_path for entry in walk_tree(root)]
        
        assert len(relative_paths) == 150
        assert set(relative_paths) == set(files)

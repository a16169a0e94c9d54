"""Behavior locks for tools/edanet_runner.py.

Pins:
- classify mode prints "<pos>\\t<category>\\t<byte repr>" per position
- wander mode prints one line per visited position after the first
- --learn writes an embedding and exits 0
- --snapshot / --resume round-trip through the belief snapshot
- exit codes: 0 success, 1 empty corpus, 2 configuration or I/O error
"""

from __future__ import annotations

import os
import tempfile
import unittest

import conftest  # noqa: F401  (import side-effect: sys.path bootstrap)

import torch

from tools.edanet_drive import CATEGORY_NAMES
from tools.edanet_runner import build_parser, main


SMALL = ["--population", "8", "--window", "2"]


class TestRunner(conftest.QuietTestCase):

    def setUp(self) -> None:
        super().setUp()
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.tmp = self._tmpdir.name
        self.log_path = os.path.join(self.tmp, "logs", "edanet.log")

        envctx = conftest.temporary_env(
            EDA_SEED=None,
            EDA_WINDOW=None,
            EDA_POPULATION=None,
            EDA_BANKS=None,
            EDA_PRECISION=None,
            EDA_DEVICE=None,
            EDA_LOG_EVERY=None,
            EDA_SNAPSHOT=None,
            EDA_LOG_PATH=self.log_path,
        )
        envctx.__enter__()
        self.addCleanup(envctx.__exit__, None, None, None)

        self.corpus = os.path.join(self.tmp, "corpus.txt")
        with open(self.corpus, "wb") as filobj:
            filobj.write(b"abracadabra")

    def _run(self, *argv: str) -> tuple[int, list[str]]:
        lines: list[str] = []
        rc = main(list(argv), write_line=lines.append)
        return rc, lines

    def test_parser_defaults(self) -> None:
        args = build_parser().parse_args([])
        self.assertFalse(args.wander)
        self.assertIsNone(args.seed)
        self.assertEqual(args.suffix, ".go")

    def test_classify(self) -> None:
        rc, lines = self._run("--file", self.corpus, "--iterations", "5", *SMALL)
        self.assertEqual(rc, 0)
        self.assertEqual(len(lines), 5)
        for idxval, line in enumerate(lines):
            posstr, catstr, bytstr = line.split("\t")
            self.assertEqual(int(posstr), idxval)
            self.assertIn(catstr, CATEGORY_NAMES)
            self.assertEqual(bytstr, repr("abracadabra"[idxval]))
        self.assertTrue(os.path.exists(self.log_path))

    def test_classify_is_reproducible(self) -> None:
        _, first = self._run("--file", self.corpus, "--seed", "4", *SMALL)
        _, second = self._run("--file", self.corpus, "--seed", "4", *SMALL)
        self.assertEqual(first, second)

    def test_wander(self) -> None:
        rc, lines = self._run("--file", self.corpus, "--wander", "--banks", "3", *SMALL)
        self.assertEqual(rc, 0)
        self.assertEqual(len(lines), len("abracadabra") - 1)
        positions = [int(line.split("\t")[0]) for line in lines]
        self.assertEqual(sorted(positions), list(range(1, len("abracadabra"))))

    def test_learn_then_use_embedding(self) -> None:
        srcdir = os.path.join(self.tmp, "src")
        os.makedirs(srcdir)
        with open(os.path.join(srcdir, "main.go"), "wb") as filobj:
            filobj.write(b"package main\n")
        embpth = os.path.join(self.tmp, "embedding.pt")

        rc, lines = self._run("--learn", srcdir, "--embedding", embpth)
        self.assertEqual((rc, lines), (0, []))
        self.assertTrue(os.path.exists(embpth))

        rc, lines = self._run("--file", self.corpus, "--embedding", embpth, "--iterations", "2", *SMALL)
        self.assertEqual(rc, 0)
        self.assertEqual(len(lines), 2)

    def test_snapshot_and_resume(self) -> None:
        snppth = os.path.join(self.tmp, "belief.pt")
        rc, _ = self._run("--file", self.corpus, "--iterations", "3", "--snapshot", snppth, *SMALL)
        self.assertEqual(rc, 0)
        self.assertTrue(os.path.exists(snppth))

        rc, lines = self._run("--file", self.corpus, "--iterations", "3", "--resume", snppth, *SMALL)
        self.assertEqual(rc, 0)
        self.assertEqual(len(lines), 3)

    def test_resume_with_wrong_shape_fails(self) -> None:
        snppth = os.path.join(self.tmp, "belief.pt")
        self._run("--file", self.corpus, "--iterations", "1", "--snapshot", snppth, *SMALL)
        rc, lines = self._run("--file", self.corpus, "--wander", "--resume", snppth, *SMALL)
        self.assertEqual((rc, lines), (2, []))

    def test_wrong_shape_embedding_fails(self) -> None:
        embpth = os.path.join(self.tmp, "small.pt")
        torch.save({"embedding": torch.zeros(3, 3)}, embpth)
        rc, lines = self._run("--file", self.corpus, "--embedding", embpth, *SMALL)
        self.assertEqual((rc, lines), (2, []))

    def test_corrupt_inputs_fail(self) -> None:
        badpth = os.path.join(self.tmp, "garbage.pt")
        with open(badpth, "wb") as filobj:
            filobj.write(b"not a torch payload")
        for flag in ("--resume", "--embedding"):
            with self.subTest(flag=flag):
                rc, lines = self._run("--file", self.corpus, flag, badpth, *SMALL)
                self.assertEqual((rc, lines), (2, []))

    def test_empty_corpus(self) -> None:
        empty = os.path.join(self.tmp, "empty.txt")
        open(empty, "wb").close()
        rc, lines = self._run("--file", empty, *SMALL)
        self.assertEqual((rc, lines), (1, []))

    def test_missing_corpus(self) -> None:
        rc, _ = self._run("--file", os.path.join(self.tmp, "absent.txt"), *SMALL)
        self.assertEqual(rc, 2)

    def test_bad_window(self) -> None:
        rc, _ = self._run("--file", self.corpus, "--population", "4", "--window", "5")
        self.assertEqual(rc, 2)


if __name__ == "__main__":
    unittest.main()

import dataclasses
import textwrap
import unittest

import gostyle


def only(*options: str, **extra) -> gostyle.Config:
    flags = {f.name: False for f in dataclasses.fields(gostyle.Config) if f.name.startswith("enable_")}
    for option in options:
        flags[option] = True
    flags.update(extra)
    return gostyle.Config(min_confidence=0.0, **flags)


def run(src: str, config: gostyle.Config, filename: str = "foo.go"):
    return gostyle.lint(filename, config, textwrap.dedent(src).lstrip().encode("utf-8"))


def parse(src: str):
    return gostyle.parse_source(textwrap.dedent(src).lstrip().encode("utf-8")).root_node


def top_level(root, node_type: str):
    return [c for c in root.named_children if c.type == node_type]


class IgnoredReturnTests(unittest.TestCase):
    config = only("enable_ignored_return_check")

    HEADER = """
        package foo

        func get() (int, error) { return 0, nil }
        func count() int        { return 0 }
        func nothing()          {}
    """

    def lint_body(self, body: str, config=None):
        src = textwrap.dedent(self.HEADER) + textwrap.dedent(body)
        return run(src, config or self.config)

    def test_bare_call_dropping_error(self) -> None:
        problems = self.lint_body("""
            func f() {
                get()
            }
        """)
        self.assertEqual(len(problems), 1)
        p = problems[0]
        self.assertEqual(p.text, "function 'get' returns an error, it should not be silently ignored")
        self.assertEqual(p.confidence, 1.0)
        self.assertEqual(p.category, "result-ignore")
        self.assertEqual(p.line_text.strip(), "get()")

    def test_bare_call_dropping_result(self) -> None:
        problems = self.lint_body("""
            func f() {
                count()
                nothing()
            }
        """)
        self.assertEqual([(p.text, p.confidence) for p in problems],
                         [("result of 'count' should not be silently ignored", 0.9)])

    def test_error_assigned_to_blank(self) -> None:
        problems = self.lint_body("""
            func f() int {
                n, _ := get()
                var m int
                m, _ = get()
                return n + m
            }
        """)
        self.assertEqual([p.text for p in problems], [
            "function 'get' returns an error, generally it should not be intentionally ignored",
            "function 'get' returns an error, generally it should not be intentionally ignored",
        ])
        self.assertEqual({p.confidence for p in problems}, {0.8})

    def test_error_kept(self) -> None:
        self.assertEqual(self.lint_body("""
            func f() error {
                m, err := get()
                _ = m
                _ = count()
                return err
            }
        """), [])

    def test_unresolvable_calls_are_skipped(self) -> None:
        self.assertEqual(self.lint_body("""
            type Getter interface {
                Get() (int, error)
            }

            func f(g Getter, h func() error) {
                g.Get()
                h()
                println("x")
            }
        """), [])

    def test_shadowed_function_is_skipped(self) -> None:
        self.assertEqual(run("""
            package foo

            func get() (int, error) { return 0, nil }

            func f() {
                get := func() int { return 1 }
                get()
            }
        """, self.config), [])

    def test_duplicate_declaration_is_skipped(self) -> None:
        self.assertEqual(run("""
            package foo

            func get() error { return nil }
            func get() error { return nil }

            func f() {
                get()
            }
        """, self.config), [])

    def test_arity_mismatch_is_left_to_the_compiler(self) -> None:
        self.assertEqual(self.lint_body("""
            func f() {
                _ = get()
            }
        """), [])

    def test_local_error_type_disables_error_detection(self) -> None:
        problems = run("""
            package foo

            type error int

            func get() error { return 0 }

            func f() {
                get()
            }
        """, self.config)
        self.assertEqual([p.text for p in problems], ["result of 'get' should not be silently ignored"])

    def test_confidence_filter(self) -> None:
        config = dataclasses.replace(self.config, min_confidence=0.95)
        problems = self.lint_body("""
            func f() {
                get()
                count()
                n, _ := get()
                _ = n
            }
        """, config)
        self.assertEqual([p.confidence for p in problems], [1.0])


class ResolverTests(unittest.TestCase):
    def test_error_result_indices(self) -> None:
        root = parse("""
            package foo

            func foo() (error, int, string, error) { return nil, 0, "", nil }
            func bar() (n int, err error)          { return 0, nil }
            func baz() error                        { return nil }
            func qux()                              {}
        """)
        funcs = top_level(root, "function_declaration")
        self.assertEqual([gostyle.error_result_indices(f) for f in funcs], [[0, 3], [1], [0], []])
        self.assertEqual(gostyle.error_result_indices(None), [])

    def test_result_positions_expand_names(self) -> None:
        root = parse("""
            package foo

            func f() (a, b int, err error) { return 0, 0, nil }
        """)
        func = top_level(root, "function_declaration")[0]
        positions = gostyle.result_positions(func)
        self.assertEqual([n.text.decode() for n, _ in positions], ["a", "b", "err"])
        self.assertEqual([t.text.decode() for _, t in positions], ["int", "int", "error"])

    def test_receiver_type(self) -> None:
        root = parse("""
            package foo

            type T struct{}
            type G[K any] struct{}

            func (t T) A()     {}
            func (t *T) B()    {}
            func (g *G[K]) C() {}
        """)
        methods = top_level(root, "method_declaration")
        self.assertEqual([gostyle.receiver_type(m) for m in methods], ["T", "T", "G"])
        self.assertEqual([gostyle.receiver_name(m) for m in methods], ["t", "t", "g"])

    def test_lookup(self) -> None:
        root = parse("""
            package foo

            import "fmt"

            var value = 1

            func helper() {}
            func value2() {}
            func fmt() {}
        """)
        resolver = gostyle.LocalResolver.build(root)
        self.assertIsNotNone(resolver.lookup("helper"))
        self.assertIsNotNone(resolver.lookup("value2"))
        self.assertIsNone(resolver.lookup("missing"))
        self.assertIsNone(resolver.lookup("value"))
        self.assertIn("fmt", resolver.ambiguous)


if __name__ == "__main__":
    unittest.main()

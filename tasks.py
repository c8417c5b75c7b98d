from invoke import task


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def simulate(c, draws=5000):
    c.run(f"python scripts/simulate_pairing.py --draws {draws}")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)

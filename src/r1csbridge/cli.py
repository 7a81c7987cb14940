import json
import functools
import click

from r1csbridge.config import BridgeConfig, LOG_LEVELS
from r1csbridge.core.errors import BridgeError
from r1csbridge.core.fieldla import BN254_PRIME
from r1csbridge.core.r1cs_io import load_r1cs, summarize_r1cs
from r1csbridge.core.witness_io import load_inputs, load_witness, partition_witness
from r1csbridge.synth.circuit import synthesize

def _reports_errors(f):
    """Turn load/synthesis defects into a clean CLI failure."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except BridgeError as e:
            raise click.ClickException(str(e)) from e
    return wrapper

@click.group()
@click.option("--log-level", type=click.Choice(list(LOG_LEVELS)), default="info", show_default=True)
@click.option("--prime", type=int, default=BN254_PRIME,
              help="Modulus of the scalar field (BN254 by default)")
@click.option("--strict/--no-strict", default=True, show_default=True,
              help="Reject witnesses assigning variables outside the circuit")
@click.pass_context
def cli(ctx, log_level, prime, strict):
    """r1csbridge command line interface"""
    cfg = BridgeConfig(prime=prime, strict=strict, log_level=log_level)
    cfg.configure_logging()
    ctx.obj = cfg

@cli.command(name="parse")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Path to the line-delimited R1CS JSON file")
@click.pass_obj
@_reports_errors
def parse_cmd(cfg, r1cs):
    """Parse and summarize an R1CS file."""
    r = load_r1cs(r1cs, cfg.prime)
    click.echo(json.dumps(summarize_r1cs(r), indent=2))

def _build(cfg, r1cs, witness):
    R = load_r1cs(r1cs, cfg.prime)
    w = None
    if witness:
        w = partition_witness(load_witness(witness, cfg.prime).witness, R.input_variables)
    return synthesize(R, w, strict=cfg.strict, p=cfg.prime)

@cli.command(name="synthesize")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--witness", type=click.Path(exists=True, dir_okay=False), required=False,
              help="Witness file; omit to synthesize in setup mode")
@click.pass_obj
@_reports_errors
def synthesize_cmd(cfg, r1cs, witness):
    """Build the constraint system and print its shape."""
    cs = _build(cfg, r1cs, witness)
    out = {
        "mode": "prove" if witness else "setup",
        "num_instance_variables": cs.num_instance_variables,
        "num_witness_variables": cs.num_witness_variables,
        "num_constraints": cs.num_constraints,
    }
    if witness:
        out["satisfied"] = cs.is_satisfied()
    click.echo(json.dumps(out, indent=2))

@cli.command(name="check")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--witness", type=click.Path(exists=True, dir_okay=False), required=True)
@click.pass_obj
@_reports_errors
def check_cmd(cfg, r1cs, witness):
    """Check that a witness satisfies every constraint."""
    cs = _build(cfg, r1cs, witness)
    bad = cs.which_is_unsatisfied()
    if bad is not None:
        raise click.ClickException(f"Witness does not satisfy R1CS (first failing row {bad})")
    click.echo(f"OK: {cs.num_constraints} constraints satisfied")

@cli.command(name="inputs")
@click.option("--inputs", "inputs_path", type=click.Path(exists=True, dir_okay=False), required=True)
@click.pass_obj
@_reports_errors
def inputs_cmd(cfg, inputs_path):
    """Print public input values ordered by variable index."""
    pi = load_inputs(inputs_path, cfg.prime)
    click.echo(json.dumps([str(v) for v in pi.values()]))


def main():
    cli()

if __name__ == "__main__":
    main()

"""Configuration for the test environment topology and image builds."""

from pathlib import Path

from pydantic import BaseModel, Field

PORT_USER_RPC = 8545
PORT_ENGINE_RPC = 8551
PORT_METRICS = 6060

METRICS_PATH = "/debug/metrics"

# Label docker compose puts on every container it creates
COMPOSE_SERVICE_LABEL = "com.docker.compose.service"
COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


class BuilderConfig(BaseModel):
    """Runtime parameters for the builder under test."""

    algo_type: str = "greedy"
    max_merged_bundles: int | None = None
    recommit: str | None = None

    def to_environment(self) -> dict[str, str]:
        """Render the parameters as compose environment variables."""
        env = {"BUILDER_ALGO_TYPE": self.algo_type}
        if self.max_merged_bundles is not None:
            env["BUILDER_MAX_MERGED_BUNDLES"] = str(self.max_merged_bundles)
        if self.recommit is not None:
            env["BUILDER_RECOMMIT"] = self.recommit
        return env


class BuildConfig(BaseModel):
    """Where the builder image sources come from."""

    repo: str = ""
    branch: str = ""
    base_dir: Path = Path(".")
    builder_image: str = "flashbots/builder:latest"
    consensus_image: str = "flashbots/prysm/beacon-chain:latest"

    @property
    def execution_context(self) -> Path:
        """Docker build context of the builder image."""
        return self.base_dir / "clients" / "execution"

    @property
    def consensus_context(self) -> Path:
        """Docker build context of the consensus client image."""
        return self.base_dir / "clients" / "consensus"


class TopologyConfig(BaseModel):
    """Fixed layout of the environment started for every test case."""

    compose_file: Path = Path("clients") / "docker-compose.yml"
    project_name: str = "builder-testsuite"
    builder_role: str = Field(
        default="geth", description="Compose service name of the builder under test"
    )
    builder_host: str = "127.0.0.1"
    user_rpc_port: int = PORT_USER_RPC
    engine_rpc_port: int = PORT_ENGINE_RPC
    metrics_port: int = PORT_METRICS
    metrics_path: str = METRICS_PATH
    connect_timeout: float = Field(default=10.0, gt=0)
    metrics_timeout: float = Field(default=10.0, gt=0)

    @property
    def control_url(self) -> str:
        """JSON-RPC endpoint of the builder."""
        return f"http://{self.builder_host}:{self.user_rpc_port}"

    @property
    def metrics_url(self) -> str:
        """Metrics endpoint of the builder."""
        return f"http://{self.builder_host}:{self.metrics_port}{self.metrics_path}"

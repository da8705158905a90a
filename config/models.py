from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

class ModelConfig(BaseModel):
    provider: str = "openai"
    name: Optional[str] = Field(None, description="模型名称，未设置时使用 provider 的默认模型")
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout_sec: int = 20
    max_retries: int = Field(2, ge=0, description="单次远程调用的最大重试次数")
    retry_backoff_sec: float = Field(0.5, ge=0, description="重试退避的初始等待时间（秒）")
    max_diff_tokens: int = Field(8000, gt=0, description="发送给模型的 diff 的最大 token 数（约 4 个字符为 1 个 token）")
    parameters: Dict[str, Any] = Field(default_factory=dict)

class OutputConfig(BaseModel):
    max_commit_length: int = Field(72, gt=0, description="提交信息的最大字符数")

class GenerationConfig(BaseModel):
    max_concurrency: int = Field(8, gt=0, description="并发分析文件的最大数量")

class DiffSourceConfig(BaseModel):
    source: str = Field("staged", description="diff 来源: staged, worktree 或 commit")
    options: Dict[str, Any] = Field(default_factory=dict)

class HookConfig(BaseModel):
    enabled: bool = Field(True, description="是否在 Git Hook 中启用 commitcraft")
    no_overwrite: bool = Field(False, description="如果提交信息文件已存在内容，则不覆盖")


class Config(BaseModel):
    model: ModelConfig = Field(default_factory=ModelConfig, description="文本生成模型相关配置")
    output: OutputConfig = Field(default_factory=OutputConfig, description="输出相关配置")
    generation: GenerationConfig = Field(default_factory=GenerationConfig, description="生成流程相关配置")
    diff: DiffSourceConfig = Field(default_factory=DiffSourceConfig, description="diff 来源配置")
    hook: HookConfig = Field(default_factory=HookConfig, description="Git Hook 相关配置")

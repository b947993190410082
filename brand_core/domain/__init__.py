"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / StreamAccumulator 模型。
- entities: 品牌、项目、任务等存储实体及 Store 协议。
- exceptions: 业务异常类型定义。
"""

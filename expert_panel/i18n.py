"""
Internationalization (i18n) support for Expert Panel.
Supports Chinese and English languages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Language(Enum):
    ZH = "zh"
    EN = "en"


@dataclass
class I18N:
    lang: Language = Language.ZH

    MESSAGES: dict[str, dict[Language, str]] = None

    def __post_init__(self):
        self.MESSAGES = {
            "help_commands": {
                Language.ZH: "可用命令",
                Language.EN: "Available Commands",
            },
            "cmd_help": {
                Language.ZH: "显示帮助信息",
                Language.EN: "Show help message",
            },
            "cmd_experts": {
                Language.ZH: "列出专家库",
                Language.EN: "List the expert library",
            },
            "cmd_team": {
                Language.ZH: "显示当前专家团",
                Language.EN: "Show the current team",
            },
            "cmd_add": {
                Language.ZH: "把专家加入团队 (id 或名字)",
                Language.EN: "Add an expert to the team (id or name)",
            },
            "cmd_remove": {
                Language.ZH: "把专家移出团队",
                Language.EN: "Remove an expert from the team",
            },
            "cmd_hire": {
                Language.ZH: "生成自定义专家 (角色 描述)",
                Language.EN: "Generate a custom expert (role description)",
            },
            "cmd_project": {
                Language.ZH: "设置项目背景 (文本或 @文件)",
                Language.EN: "Set the project description (text or @file)",
            },
            "cmd_select": {
                Language.ZH: "选择执行任务的专家 (all 为全选)",
                Language.EN: "Select experts for the next task (all selects everyone)",
            },
            "cmd_task": {
                Language.ZH: "向选中的专家下达任务",
                Language.EN: "Send a task to the selected experts",
            },
            "cmd_stop": {
                Language.ZH: "终止自动互动",
                Language.EN: "Stop automatic follow-ups",
            },
            "cmd_status": {
                Language.ZH: "显示执行状态",
                Language.EN: "Show execution status",
            },
            "cmd_results": {
                Language.ZH: "显示任务结果",
                Language.EN: "Show task results",
            },
            "cmd_dismiss": {
                Language.ZH: "清除某位专家的错误标记",
                Language.EN: "Dismiss an expert's error marker",
            },
            "cmd_delete": {
                Language.ZH: "删除一条结果",
                Language.EN: "Delete one result",
            },
            "cmd_clear": {
                Language.ZH: "清空全部结果",
                Language.EN: "Clear all results",
            },
            "cmd_export": {
                Language.ZH: "导出结果为 Markdown",
                Language.EN: "Export a result as Markdown",
            },
            "cmd_analyze": {
                Language.ZH: "专家团整体评估",
                Language.EN: "Structured team analysis",
            },
            "cmd_arena": {
                Language.ZH: "赛马模式：多个模型同时评估",
                Language.EN: "Arena mode: several models analyse at once",
            },
            "cmd_models": {
                Language.ZH: "列出模型，或切换当前模型",
                Language.EN: "List models, or switch the active model",
            },
            "cmd_test": {
                Language.ZH: "测试模型连接",
                Language.EN: "Test a model connection",
            },
            "cmd_lang": {
                Language.ZH: "切换语言",
                Language.EN: "Switch language",
            },
            "cmd_stats": {
                Language.ZH: "API 调用统计",
                Language.EN: "API call statistics",
            },
            "cmd_edit": {
                Language.ZH: "修改专家的名字、描述或头像 (name|desc|avatar)",
                Language.EN: "Edit an expert's name, description or avatar (name|desc|avatar)",
            },
            "cmd_history": {
                Language.ZH: "查看历史评估记录",
                Language.EN: "Show past analyses",
            },
            "cmd_backup": {
                Language.ZH: "导出数据备份 (JSON)",
                Language.EN: "Export a data backup (JSON)",
            },
            "cmd_restore": {
                Language.ZH: "从备份文件导入数据",
                Language.EN: "Import data from a backup file",
            },
            "cmd_exit": {
                Language.ZH: "退出程序",
                Language.EN: "Exit the program",
            },
            "validation_no_experts": {
                Language.ZH: "请至少选择一位专家",
                Language.EN: "Select at least one expert",
            },
            "validation_no_instruction": {
                Language.ZH: "请输入任务内容",
                Language.EN: "Enter a task instruction",
            },
            "validation_no_project": {
                Language.ZH: "请先完善项目背景",
                Language.EN: "Describe the project first",
            },
            "arena_no_team": {
                Language.ZH: "请先组建专家团",
                Language.EN: "Build a team first",
            },
            "arena_min_models": {
                Language.ZH: "请至少选择 2 个模型进行比赛",
                Language.EN: "Select at least 2 models for the arena",
            },
            "termination_notice": {
                Language.ZH: "⚠️ 用户已手动终止互动！当前正在进行的任务回复完成后，将不再触发新的自动指令。",
                Language.EN: "⚠️ Interaction stopped. Tasks already running will finish, but no new follow-ups will start.",
            },
            "unknown_error": {
                Language.ZH: "未知错误",
                Language.EN: "Unknown error",
            },
            "thinking": {
                Language.ZH: "正在思考",
                Language.EN: "Thinking",
            },
            "triggered_by": {
                Language.ZH: "被 {name} 点名",
                Language.EN: "Requested by {name}",
            },
            "replied_to": {
                Language.ZH: "自动回复：响应了 {name} 的请求",
                Language.EN: "Auto reply to {name}'s request",
            },
            "no_results": {
                Language.ZH: "暂无任务结果",
                Language.EN: "No task results yet",
            },
            "no_team": {
                Language.ZH: "暂无团队成员，请先用 /add 选择顾问",
                Language.EN: "The team is empty, use /add to pick advisors",
            },
            "team_title": {
                Language.ZH: "专家团",
                Language.EN: "Team",
            },
            "experts_title": {
                Language.ZH: "专家库",
                Language.EN: "Expert Library",
            },
            "models_title": {
                Language.ZH: "模型",
                Language.EN: "Models",
            },
            "selected": {
                Language.ZH: "已选择",
                Language.EN: "Selected",
            },
            "not_found": {
                Language.ZH: "未找到",
                Language.EN: "Not found",
            },
            "project_set": {
                Language.ZH: "项目背景已更新",
                Language.EN: "Project description updated",
            },
            "dispatched": {
                Language.ZH: "已向 {count} 位专家下达任务",
                Language.EN: "Task sent to {count} experts",
            },
            "nothing_running": {
                Language.ZH: "当前没有进行中的任务",
                Language.EN: "No task is running",
            },
            "cleared": {
                Language.ZH: "已清空",
                Language.EN: "Cleared",
            },
            "deleted": {
                Language.ZH: "已删除",
                Language.EN: "Deleted",
            },
            "no_history": {
                Language.ZH: "暂无历史评估",
                Language.EN: "No past analyses",
            },
            "expert_updated": {
                Language.ZH: "专家信息已更新",
                Language.EN: "Expert updated",
            },
            "edit_usage": {
                Language.ZH: "用法: /edit <id|名字> <name|desc|avatar> <新值>",
                Language.EN: "Usage: /edit <id|name> <name|desc|avatar> <value>",
            },
            "backup_saved": {
                Language.ZH: "备份已保存到",
                Language.EN: "Backup saved to",
            },
            "restored": {
                Language.ZH: "数据导入成功！",
                Language.EN: "Data imported!",
            },
            "restore_invalid": {
                Language.ZH: "导入失败：文件格式不正确",
                Language.EN: "Import failed: invalid file format",
            },
            "exported": {
                Language.ZH: "已导出到",
                Language.EN: "Exported to",
            },
            "language_switched": {
                Language.ZH: "已切换到中文",
                Language.EN: "Switched to English",
            },
            "created_config": {
                Language.ZH: "已创建配置文件:",
                Language.EN: "Created config file:",
            },
            "edit_config": {
                Language.ZH: "请编辑配置文件并填入 API 密钥",
                Language.EN: "Edit the config file and fill in your API keys",
            },
            "no_api_keys": {
                Language.ZH: "没有配置任何模型的 API 密钥",
                Language.EN: "No model has an API key configured",
            },
            "run_init": {
                Language.ZH: "运行 expert-panel --init 创建配置文件",
                Language.EN: "Run expert-panel --init to create a config file",
            },
            "unknown_command": {
                Language.ZH: "未知命令",
                Language.EN: "Unknown command",
            },
            "type_help": {
                Language.ZH: "输入 /help 查看可用命令",
                Language.EN: "Type /help for available commands",
            },
            "use_exit": {
                Language.ZH: "使用 /exit 退出",
                Language.EN: "Use /exit to quit",
            },
            "analysis_failed": {
                Language.ZH: "评估结果无法解析，以下为模型原始回复",
                Language.EN: "Could not parse the analysis, showing the raw reply",
            },
            "persona_fallback": {
                Language.ZH: "生成描述失败，请手动编辑。",
                Language.EN: "Failed to generate description. Please edit manually.",
            },
        }

    def t(self, key: str, **kwargs) -> str:
        msg = self.MESSAGES.get(key, {})
        text = msg.get(self.lang, key)
        return text.format(**kwargs) if kwargs else text

    def set_language(self, lang: Language):
        self.lang = lang

    def toggle_language(self) -> Language:
        if self.lang == Language.ZH:
            self.lang = Language.EN
        else:
            self.lang = Language.ZH
        return self.lang


_i18n: Optional[I18N] = None


def get_i18n() -> I18N:
    global _i18n
    if _i18n is None:
        _i18n = I18N()
    return _i18n


def set_language(lang: Language):
    get_i18n().set_language(lang)


def t(key: str, **kwargs) -> str:
    return get_i18n().t(key, **kwargs)

import pandas as pd
import plotly.express as px

from utils import PHASE_COLORS, apply_chart_theme

COLLECTION_LABELS = {
    'martyrs': 'Martyrs',
    'locations': 'Locations',
    'legends': 'Legends',
    'activityTypes': 'Activity types',
    'activities': 'Activities',
    'news': 'News',
}


def create_content_totals_chart(counts: dict):
    """
    Bar chart of how many documents each content collection holds.
    Args:
        counts (dict): collection name -> document count.
    Returns:
        go.Figure or None: The generated Plotly figure, or None if there is no content.
    """
    if not counts or sum(counts.values()) == 0:
        return None

    df = pd.DataFrame(
        [{'collection': COLLECTION_LABELS.get(name, name), 'count': count} for name, count in counts.items()]
    )
    fig = px.bar(df, x='collection', y='count', text='count',
                 labels={'collection': '', 'count': 'Documents'},
                 color_discrete_sequence=['#2980B9'])
    fig = apply_chart_theme(fig, 'bar')
    fig.update_traces(textposition='outside')
    return fig


def create_phase_donut_chart(phases: list, title: str = None):
    """
    Donut chart of the lifecycle phases of timed records.
    Args:
        phases (list): phase values ('upcoming', 'auto-active', ...), one per record.
    """
    phases = [p for p in phases if p]
    if not phases:
        return None

    df = pd.Series(phases).value_counts().rename_axis('phase').reset_index(name='count')
    fig = px.pie(df, names='phase', values='count', hole=0.5, title=title,
                 color='phase', color_discrete_map=PHASE_COLORS)
    return apply_chart_theme(fig, 'pie')


def create_created_over_time_chart(records: list, label: str):
    """
    Area chart of cumulative documents created per day.
    """
    dates = [r.get('createdAt') for r in records if r.get('createdAt') is not None]
    if not dates:
        return None

    df = pd.DataFrame({'created': pd.to_datetime(dates, utc=True)})
    daily = df.groupby(df['created'].dt.date).size().reset_index(name='count')
    daily['cumulative'] = daily['count'].cumsum()
    fig = px.area(daily, x='created', y='cumulative',
                  labels={'created': 'Date', 'cumulative': f'Total {label}'})
    return apply_chart_theme(fig, 'area')


def create_news_type_chart(news: list):
    types = [n.get('type', 'regular') for n in news]
    if not types:
        return None
    df = pd.Series(types).value_counts().rename_axis('type').reset_index(name='count')
    fig = px.pie(df, names='type', values='count', hole=0.5,
                 color_discrete_sequence=['#2980B9', '#F39C12', '#8E44AD'])
    return apply_chart_theme(fig, 'pie')
